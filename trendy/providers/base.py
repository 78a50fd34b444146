from __future__ import annotations
from datetime import date, datetime
from typing import Any

from ..series import Span

class Provider:
    """Remote source of daily measures; the slowest tier of resolution."""

    name: str

    def fetch(self, symbol: str, start: date | datetime, end: date | datetime, **kwargs: Any) -> Span:
        raise NotImplementedError
