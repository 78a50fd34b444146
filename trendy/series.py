"""Daily measures and spans shared by the store, the provider and the resolver."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Iterator, overload

import numpy as np
import pandas as pd


def as_datetime(value: date | datetime) -> datetime:
    """Naive UTC ``datetime`` for a date or datetime (dates land on midnight)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.min)


def as_day(value: date | datetime) -> date:
    return as_datetime(value).date()


@dataclass(frozen=True, eq=False)
class Measure:
    time: datetime
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "time", as_datetime(self.time))
        object.__setattr__(self, "value", float(np.float32(self.value)))

    @property
    def day(self) -> date:
        return self.time.date()

    @property
    def _bits(self) -> int:
        return int(np.float32(self.value).view(np.uint32))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Measure):
            return NotImplemented
        return self.day == other.day and self._bits == other._bits

    def __hash__(self) -> int:
        return hash((self.day, self._bits))

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.day.isoformat(), "value": self.value}


class Span:
    """Ordered measures for one symbol, sorted lazily before covers/between."""

    def __init__(self, measures: Iterable[Measure] = ()):
        self._measures: list[Measure] = list(measures)
        self._sorted = self._check_sorted()

    def _check_sorted(self) -> bool:
        m = self._measures
        return all(m[i].time <= m[i + 1].time for i in range(len(m) - 1))

    # sequence protocol

    def __len__(self) -> int:
        return len(self._measures)

    def __iter__(self) -> Iterator[Measure]:
        return iter(self._measures)

    @overload
    def __getitem__(self, index: int) -> Measure: ...

    @overload
    def __getitem__(self, index: slice) -> "Span": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Span(self._measures[index])
        return self._measures[index]

    def __bool__(self) -> bool:
        return bool(self._measures)

    def __repr__(self) -> str:
        if not self._measures:
            return "Span([])"
        return f"Span({len(self)} measures, {self._measures[0].day} .. {self._measures[-1].day})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Span):
            return NotImplemented
        return self.equal(other)

    __hash__ = None  # type: ignore[assignment]

    def append(self, measure: Measure) -> None:
        if self._measures and measure.time < self._measures[-1].time:
            self._sorted = False
        self._measures.append(measure)

    def extend(self, measures: Iterable[Measure]) -> None:
        for m in measures:
            self.append(m)

    # ordering

    def is_sorted(self) -> bool:
        return self._sorted

    def sort(self) -> None:
        if not self._sorted:
            self._measures.sort(key=lambda m: m.time)
            self._sorted = True

    @property
    def first(self) -> Measure:
        return self._measures[0]

    @property
    def last(self) -> Measure:
        return self._measures[-1]

    # queries

    def covers(self, when: date | datetime) -> bool:
        """True when the day of ``when`` lies within the first and last measure days."""
        if not self._measures:
            return False
        self.sort()
        day = as_day(when)
        return self.first.day <= day <= self.last.day

    def equal(self, other: "Span") -> bool:
        if len(self) != len(other):
            return False
        return all(a == b for a, b in zip(self._measures, other._measures))

    def between(self, start: date | datetime, end: date | datetime) -> "Span":
        """Slice out the memoized measures for ``[start, end]``.

        The lower bound steps back one from the first measure strictly after
        ``start`` so the measure covering ``start`` is included; the upper
        bound is the first measure strictly after ``end``, exclusive.
        """
        self.sort()
        times = [m.time for m in self._measures]
        lo = max(bisect_right(times, as_datetime(start)) - 1, 0)
        hi = bisect_right(times, as_datetime(end))
        return Span(self._measures[lo:hi])

    # conversions

    def to_records(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._measures]

    def to_series(self, name: str | None = None) -> pd.Series:
        return pd.Series(
            [m.value for m in self._measures],
            index=pd.Index([m.day for m in self._measures], name="date"),
            name=name or "value",
            dtype="float64",
        )
