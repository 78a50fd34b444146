"""Tiered resolution of a symbol's daily closes: memory, then store, then remote."""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from .exceptions import StoreError
from .providers.base import Provider
from .series import Span, as_day
from .store import PersistentStore

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    MEMORY = "memory"
    STORE = "store"
    REMOTE = "remote"


class Stock:
    def __init__(self, symbol: str, store: PersistentStore, provider: Provider):
        self.symbol = symbol
        self.span = Span()
        self.store = store
        self.provider = provider
        # which tier answered the last range() call
        self.source: Tier | None = None
        # set when populate() fetched data but could not persist it
        self.persist_error: StoreError | None = None

    def __repr__(self) -> str:
        return f"Stock({self.symbol!r}, {self.span!r})"

    def range(self, start: date | datetime, end: date | datetime, url: str | None = None) -> Span:
        """Daily measures for ``[start, end]``, resolved memory -> store -> remote.

        Store read failures are raised as :class:`StoreError` and never fall
        through to the remote tier. ``url`` overrides the provider endpoint and
        only matters when the remote tier is reached.
        """
        # reversed ranges skip memory
        if as_day(start) <= as_day(end) and self.span.covers(start) and self.span.covers(end):
            logger.debug("%s %s..%s served from memory", self.symbol, as_day(start), as_day(end))
            self.source = Tier.MEMORY
            return self.span.between(start, end)

        stored = self.store.get_range(self.symbol, start, end)
        if stored:
            logger.debug("%s %s..%s served from store (%d)", self.symbol, as_day(start), as_day(end), len(stored))
            self.source = Tier.STORE
            return stored

        logger.info("%s %s..%s not stored, fetching from %s", self.symbol, as_day(start), as_day(end), self.provider.name)
        span = self.populate(start, end, url=url)
        self.source = Tier.REMOTE
        return span

    def populate(self, start: date | datetime, end: date | datetime, url: str | None = None) -> Span:
        """Fetch ``[start, end]`` remotely, memoize it and write it to the store.

        The memoized span is replaced, not merged. A failed store write is kept
        on :attr:`persist_error` and logged; the fetched span is still returned.
        """
        kwargs: dict[str, Any] = {"url": url} if url else {}
        span = self.provider.fetch(self.symbol, start, end, **kwargs)
        self.span = span
        self.persist_error = None

        try:
            self.store.insert(self.symbol, span)
        except StoreError as e:
            self.persist_error = e
            logger.warning("%s: fetched %d measures but could not store them: %s", self.symbol, len(span), e)
        return span

    def to_dict(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "measures": self.span.to_records()}
