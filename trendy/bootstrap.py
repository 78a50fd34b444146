from __future__ import annotations

from datetime import date, datetime

from .providers.base import Provider
from .providers.markit import MarkitProvider
from .providers.retry import RetryingProvider
from .settings import Settings
from .stock import Stock
from .store import PersistentStore, SQLStore


def parse_day(s: str) -> datetime:
    try:
        return datetime.combine(date.fromisoformat(s), datetime.min.time())
    except (TypeError, ValueError) as e:
        raise ValueError(f"Could not parse {s!r} as a date, must be YYYY-MM-DD") from e


def open_store(cfg: Settings) -> SQLStore:
    store = SQLStore.from_url(cfg.database_url)
    store.create_if_not_exists()
    return store


def build_provider(cfg: Settings, retries: int = 0) -> Provider:
    provider: Provider = MarkitProvider(url=cfg.markit_url, timeout=cfg.request_timeout)
    if retries > 0:
        provider = RetryingProvider(provider, attempts=retries + 1)
    return provider


def resolve_stock(
    symbol: str,
    start: date | datetime,
    end: date | datetime,
    store: PersistentStore,
    provider: Provider,
    url: str | None = None,
) -> Stock:
    """Resolve one request against a fresh ``Stock`` and hand back the stock.

    The stock's memoized span is overridden with the answer so it serializes
    as the response body.
    """
    stock = Stock(symbol, store=store, provider=provider)
    stock.span = stock.range(start, end, url=url)
    return stock
