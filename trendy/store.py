"""Persistent tier over SQLModel; any SQLAlchemy URL works."""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from .exceptions import StoreError
from .models import MeasureRow
from .series import Measure, Span, as_datetime, as_day

logger = logging.getLogger(__name__)


class PersistentStore:
    def get_range(self, symbol: str, start: date | datetime, end: date | datetime) -> Span:
        """All stored measures for ``symbol`` with day in ``[start, end]``, ascending."""
        raise NotImplementedError

    def insert(self, symbol: str, span: Span) -> None:
        """Append every measure of ``span`` in one all-or-nothing transaction."""
        raise NotImplementedError


class SQLStore(PersistentStore):
    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> SQLStore:
        try:
            return cls(create_engine(url, echo=echo))
        except (SQLAlchemyError, ImportError, ValueError) as e:
            raise StoreError(f"Could not create engine for {url}: {e}") from e

    def session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def create_if_not_exists(self) -> None:
        try:
            SQLModel.metadata.create_all(self.engine, tables=[MeasureRow.__table__])
        except SQLAlchemyError as e:
            raise StoreError(f"Could not create measures schema: {e}") from e

    def get_range(self, symbol: str, start: date | datetime, end: date | datetime) -> Span:
        lo, hi = as_day(start), as_day(end)
        logger.debug("store get_range %s %s..%s", symbol, lo, hi)
        q = (
            select(MeasureRow)
            .where(MeasureRow.symbol == symbol, MeasureRow.time >= lo, MeasureRow.time <= hi)
            .order_by(MeasureRow.time)
        )
        try:
            with self.session() as s:
                rows = s.exec(q).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read {symbol} {lo}..{hi}: {e}") from e
        return Span(Measure(time=as_datetime(r.time), value=r.value) for r in rows)

    def insert(self, symbol: str, span: Span) -> None:
        if not span:
            return
        with self.session() as s:
            try:
                for m in span:
                    s.add(MeasureRow(symbol=symbol, time=m.day, value=m.value))
                s.commit()
            except SQLAlchemyError as e:
                s.rollback()
                raise StoreError(f"Could not insert {len(span)} measures for {symbol}: {e}") from e
        logger.debug("store inserted %d measures for %s", len(span), symbol)
