"""Markit On Demand InteractiveChart client."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

import requests

from ..exceptions import NoDataError, ParseError, ProviderRejection, TransportError
from ..series import Measure, Span, as_datetime
from .base import Provider

logger = logging.getLogger(__name__)

MARKIT_CHART_URL = "http://dev.markitondemand.com/Api/v2/InteractiveChart/json"

# Sent without an offset; the provider answers with a literal "-00" suffix.
REQUEST_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
RESPONSE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S-00"


class PriceField(str, Enum):
    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"


def format_request_date(when: date | datetime) -> str:
    return as_datetime(when).strftime(REQUEST_DATE_FORMAT)


def parse_markit_date(token: Any) -> datetime:
    """Parse a response date token such as ``2011-05-20T00:00:00-00``.

    Markit often truncates the trailing ``-00``; it is re-appended whenever the
    third-from-last character is not a dash.
    """
    if not isinstance(token, str) or len(token) < 3:
        raise ParseError(f"Invalid Markit date token: {token!r}")
    if token[-3] != "-":
        token = f"{token}-00"
    try:
        return datetime.strptime(token, RESPONSE_DATE_FORMAT)
    except ValueError as e:
        raise ParseError(f"Invalid Markit date token: {token!r}") from e


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Markit returned a non-numeric bound: {value!r}") from e


def _optional_date(token: Any) -> datetime | None:
    return None if token is None else parse_markit_date(token)


def _floats(values: Any, what: str) -> list[float]:
    if not isinstance(values, list):
        raise ParseError(f"Markit {what} is not a list: {type(values).__name__}")
    try:
        return [float(v) for v in values]
    except (TypeError, ValueError) as e:
        raise ParseError(f"Markit {what} holds a non-numeric value: {e}") from e


@dataclass(frozen=True)
class SeriesValues:
    min: float | None = None
    max: float | None = None
    min_date: datetime | None = None
    max_date: datetime | None = None
    values: list[float] = field(default_factory=list)

    @classmethod
    def from_json(cls, doc: Any) -> SeriesValues | None:
        if doc is None:
            return None
        if not isinstance(doc, dict):
            raise ParseError(f"Markit data series is not an object: {doc!r}")
        return cls(
            min=_optional_float(doc.get("min")),
            max=_optional_float(doc.get("max")),
            min_date=_optional_date(doc.get("minDate")),
            max_date=_optional_date(doc.get("maxDate")),
            values=_floats(doc.get("values") or [], "values"),
        )


@dataclass(frozen=True)
class DataSeries:
    open: SeriesValues | None = None
    high: SeriesValues | None = None
    low: SeriesValues | None = None
    close: SeriesValues | None = None
    volume: SeriesValues | None = None

    @classmethod
    def from_json(cls, doc: Any) -> DataSeries | None:
        if doc is None:
            return None
        if not isinstance(doc, dict):
            raise ParseError(f"Markit DataSeries is not an object: {doc!r}")
        return cls(**{k: SeriesValues.from_json(doc.get(k)) for k in ("open", "high", "low", "close", "volume")})


@dataclass(frozen=True)
class Element:
    symbol: str
    type: str
    currency: str | None = None
    timestamp: str | None = None
    params: list[str] = field(default_factory=list)
    data_series: DataSeries | None = None

    @classmethod
    def from_json(cls, doc: Any) -> Element:
        if not isinstance(doc, dict):
            raise ParseError(f"Markit element is not an object: {doc!r}")
        return cls(
            symbol=str(doc.get("Symbol", "")),
            type=str(doc.get("Type", "")),
            currency=doc.get("Currency"),
            timestamp=doc.get("TimeStamp"),
            params=list(doc.get("Params") or []),
            data_series=DataSeries.from_json(doc.get("DataSeries")),
        )


@dataclass(frozen=True)
class Labels:
    dates: list[str] = field(default_factory=list)
    pos: list[str] = field(default_factory=list)
    priorities: list[str] = field(default_factory=list)
    text: list[str] = field(default_factory=list)
    utcdates: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, doc: Any) -> Labels | None:
        if doc is None:
            return None
        if not isinstance(doc, dict):
            raise ParseError(f"Markit Labels is not an object: {doc!r}")
        return cls(**{k: list(doc.get(k) or []) for k in ("dates", "pos", "priorities", "text", "utcdates")})


@dataclass(frozen=True)
class ChartResponse:
    labels: Labels | None = None
    positions: list[float] | None = None
    dates: list[datetime] = field(default_factory=list)
    elements: list[Element] = field(default_factory=list)
    exception_type: str = ""
    message: str = ""
    details: str = ""
    inner_exception: str = ""

    @classmethod
    def from_json(cls, payload: Any) -> ChartResponse:
        if not isinstance(payload, dict):
            raise ParseError(f"Markit response is not an object: {type(payload).__name__}")
        positions = payload.get("Positions")
        return cls(
            labels=Labels.from_json(payload.get("Labels")),
            positions=None if positions is None else _floats(positions, "Positions"),
            dates=[parse_markit_date(t) for t in payload.get("Dates") or []],
            elements=[Element.from_json(e) for e in payload.get("Elements") or []],
            exception_type=payload.get("ExceptionType") or "",
            message=payload.get("Message") or "",
            details=payload.get("Details") or "",
            inner_exception=payload.get("InnerException") or "",
        )

    def check(self) -> None:
        """Raise for an exception envelope or an empty (no positions) answer."""
        if self.exception_type:
            text = f'Exception response from Markit "{self.exception_type}"'
            if self.message:
                text = f'{text}: "{self.message}"'
            if self.details:
                text = f'{text} - "{self.details}"'
            raise ProviderRejection(text, exception_type=self.exception_type, details=self.details)
        if self.positions is None:
            raise NoDataError("No data returned by Markit for the requested range")

    def price_element(self) -> Element | None:
        found = None
        for elem in self.elements:
            if elem.type == "price":
                found = elem
        return found

    def span(self, price_field: PriceField = PriceField.CLOSE) -> Span:
        """Zip one price sub-series with ``dates``; empty when no price element came back."""
        elem = self.price_element()
        if elem is None or elem.data_series is None:
            return Span()
        price_field = PriceField(price_field)
        data: SeriesValues | None = getattr(elem.data_series, price_field.value)
        if data is None:
            return Span()
        if len(data.values) > len(self.dates):
            raise ParseError(
                f"Markit returned {len(data.values)} {price_field.value} values for {len(self.dates)} dates"
            )
        return Span(Measure(time=t, value=v) for t, v in zip(self.dates, data.values))


@dataclass
class MarkitChartRequest:
    symbol: str
    start_date: str
    end_date: str
    url: str = MARKIT_CHART_URL

    @classmethod
    def build(cls, symbol: str, start: date | datetime, end: date | datetime, url: str | None = None) -> MarkitChartRequest:
        return cls(
            symbol=symbol,
            start_date=format_request_date(start),
            end_date=format_request_date(end),
            url=url or MARKIT_CHART_URL,
        )

    def parameters(self) -> dict[str, Any]:
        return {
            "Normalized": False,
            "StartDate": self.start_date,
            "EndDate": self.end_date,
            "DataPeriod": "Day",
            "Elements": [
                {"Symbol": self.symbol, "Type": "price", "Params": ["ohlc"]},
                {"Symbol": self.symbol, "Type": "volume"},
            ],
        }

    def encoded_parameters(self) -> str:
        return json.dumps(self.parameters(), separators=(",", ":"))

    @property
    def full_url(self) -> str:
        prepared = requests.Request("GET", self.url, params={"parameters": self.encoded_parameters()}).prepare()
        return str(prepared.url)


class MarkitChartClient:
    def __init__(self, timeout: float = 30.0, session: requests.Session | None = None):
        self.timeout = timeout
        # None means module-level requests.get
        self._session = session

    def request(self, req: MarkitChartRequest) -> ChartResponse:
        logger.debug("Markit request %s %s..%s via %s", req.symbol, req.start_date, req.end_date, req.url)
        try:
            http = self._session or requests
            r = http.get(req.url, params={"parameters": req.encoded_parameters()}, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"Markit request timed out after {self.timeout}s: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"Markit request failed: {e}") from e

        if not 200 <= r.status_code < 300:
            raise TransportError(f"{r.status_code} {r.reason or ''}".strip())

        try:
            payload = r.json()
        except ValueError as e:
            raise ParseError(f"Markit returned non-JSON: {e}") from e

        response = ChartResponse.from_json(payload)
        try:
            response.check()
        except ProviderRejection as e:
            logger.warning("Markit rejected %s %s..%s: %s", req.symbol, req.start_date, req.end_date, e)
            raise
        return response


class MarkitProvider(Provider):
    name = "markit"

    def __init__(self, url: str = MARKIT_CHART_URL, timeout: float = 30.0, session: requests.Session | None = None):
        self.url = url
        self.client = MarkitChartClient(timeout=timeout, session=session)

    def fetch(self, symbol: str, start: date | datetime, end: date | datetime, **kwargs: Any) -> Span:
        request = MarkitChartRequest.build(symbol, start, end, url=kwargs.get("url") or self.url)
        return self.client.request(request).span(PriceField.CLOSE)
