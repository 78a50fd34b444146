"""Tests for the retrying provider wrapper."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from trendy.exceptions import NoDataError, ProviderRejection, TransportError
from trendy.providers.base import Provider
from trendy.providers.retry import RetryingProvider


@pytest.fixture
def inner() -> MagicMock:
    provider = MagicMock(spec=Provider)
    provider.name = "mock"
    return provider


def wrap(inner: MagicMock, attempts: int = 3) -> RetryingProvider:
    return RetryingProvider(inner, attempts=attempts, min_wait=0, max_wait=0)


def test_transport_errors_are_retried(inner, june_span) -> None:
    inner.fetch.side_effect = [TransportError("503"), TransportError("503"), june_span]

    got = wrap(inner).fetch("GOOG", date(2015, 6, 1), date(2015, 6, 15))

    assert got.equal(june_span)
    assert inner.fetch.call_count == 3


def test_gives_up_after_attempts(inner) -> None:
    inner.fetch.side_effect = TransportError("503 Service Unavailable")

    with pytest.raises(TransportError, match="503"):
        wrap(inner, attempts=2).fetch("GOOG", date(2015, 6, 1), date(2015, 6, 15))

    assert inner.fetch.call_count == 2


@pytest.mark.parametrize("error", [ProviderRejection("bad range"), NoDataError("none")])
def test_answers_from_the_provider_are_not_retried(inner, error) -> None:
    inner.fetch.side_effect = error

    with pytest.raises(type(error)):
        wrap(inner).fetch("GOOG", date(2015, 6, 1), date(2015, 6, 15))

    assert inner.fetch.call_count == 1


def test_kwargs_are_forwarded(inner, june_span) -> None:
    inner.fetch.return_value = june_span
    wrap(inner).fetch("GOOG", date(2015, 6, 1), date(2015, 6, 15), url="http://127.0.0.1:1/")
    inner.fetch.assert_called_once_with("GOOG", date(2015, 6, 1), date(2015, 6, 15), url="http://127.0.0.1:1/")


def test_takes_inner_name(inner) -> None:
    assert wrap(inner).name == "mock"
