from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..exceptions import TransportError
from ..series import Span
from .base import Provider

logger = logging.getLogger(__name__)


class RetryingProvider(Provider):
    """Wraps a provider and retries transport failures with exponential backoff.

    Rejections, empty answers and parse failures are not retried; asking again
    would get the same answer.
    """

    def __init__(self, inner: Provider, attempts: int = 3, min_wait: float = 1.0, max_wait: float = 12.0):
        self.inner = inner
        self.name = inner.name
        self.attempts = attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    def fetch(self, symbol: str, start: date | datetime, end: date | datetime, **kwargs: Any) -> Span:
        @retry(
            reraise=True,
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=1.0, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        def _call() -> Span:
            return self.inner.fetch(symbol, start, end, **kwargs)

        return _call()
