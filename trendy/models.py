from __future__ import annotations
from datetime import date
from sqlmodel import SQLModel, Field

class MeasureRow(SQLModel, table=True):
    """One stored daily value; ``(symbol, time)`` is unique."""

    __tablename__ = "measures"

    symbol: str = Field(primary_key=True, max_length=255)
    time: date = Field(primary_key=True)
    value: float
