"""Shared fixtures: sample spans, saved Markit bodies, stores and a Markit stand-in."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timedelta
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

from trendy.series import Measure, Span
from trendy.store import SQLStore

DATA_DIR = Path(__file__).parent / "data"

# an arbitrary date in the past so saved responses stay comparable
ARBITRARY_DATE = datetime(2011, 5, 20, 12, 0, 0)

AMZN_CLOSES = [
    198.65, 196.22, 193.27, 192.26, 195, 194.13, 196.69, 192.395, 193.65, 188.32,
    185.69, 187.55, 188.05, 189.68, 186.53, 186.29, 189.96, 185.98, 183.65, 186.37,
]
AMZN_DAYS = [
    "2011-05-20", "2011-05-23", "2011-05-24", "2011-05-25", "2011-05-26", "2011-05-27",
    "2011-05-31", "2011-06-01", "2011-06-02", "2011-06-03", "2011-06-06", "2011-06-07",
    "2011-06-08", "2011-06-09", "2011-06-10", "2011-06-13", "2011-06-14", "2011-06-15",
    "2011-06-16", "2011-06-17",
]


def load_body(name: str) -> str:
    return (DATA_DIR / name).read_text(encoding="utf-8").strip()


@pytest.fixture
def june_span() -> Span:
    """Fifteen consecutive days of June 2015, stamped at midday."""
    values = [
        0.012345, 0.012346, 0.012347, 0.012348, 0.012349, 0.012350, 0.012351, 0.012352,
        0.012353, 0.012354, 0.012355, 0.012354, 0.012353, 0.012352, 0.012351,
    ]
    return Span(Measure(datetime(2015, 6, day, 12, 0, 0), v) for day, v in enumerate(values, start=1))


@pytest.fixture
def amzn_span() -> Span:
    return Span(
        Measure(datetime.fromisoformat(d), v) for d, v in zip(AMZN_DAYS, AMZN_CLOSES)
    )


@pytest.fixture
def amzn_body() -> str:
    return load_body("amzn_2011-05-20_30d.json")


@pytest.fixture
def store(tmp_path: Path) -> SQLStore:
    s = SQLStore.from_url(f"sqlite:///{tmp_path / 'trendy.db'}")
    s.create_if_not_exists()
    return s


class MarkitStandIn:
    """Local HTTP stand-in for the Markit endpoint.

    Answers with the saved body registered for ``(symbol, StartDate, EndDate)``
    when ``status`` is 200, otherwise with ``status`` and no body.
    """

    def __init__(self) -> None:
        self.status = 200
        self.bodies: dict[tuple[str, str, str], str] = {}
        self.requests: list[dict] = []
        stand_in = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                query = parse_qs(urlparse(self.path).query)
                params = json.loads(query["parameters"][0])
                stand_in.requests.append(params)
                if stand_in.status != 200:
                    self.send_response(stand_in.status)
                    self.end_headers()
                    return
                key = (params["Elements"][0]["Symbol"], params["StartDate"], params["EndDate"])
                body = stand_in.bodies.get(key)
                if body is None:
                    self.send_response(404)
                    self.end_headers()
                    return
                self.send_response(200)
                self.send_header("Content-Type", "application/json")
                self.end_headers()
                self.wfile.write(body.encode("utf-8"))

            def log_message(self, format: str, *args) -> None:
                pass

        self.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.url = f"http://127.0.0.1:{self.server.server_address[1]}/Api/v2/InteractiveChart/json"
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    def register(self, symbol: str, start: datetime, end: datetime, body: str) -> None:
        fmt = "%Y-%m-%dT%H:%M:%S"
        self.bodies[(symbol, start.strftime(fmt), end.strftime(fmt))] = body

    def __enter__(self) -> MarkitStandIn:
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def markit():
    with MarkitStandIn() as stand_in:
        stand_in.register("AMZN", ARBITRARY_DATE, ARBITRARY_DATE + timedelta(days=30), load_body("amzn_2011-05-20_30d.json"))
        stand_in.register("MSFT", ARBITRARY_DATE, ARBITRARY_DATE, load_body("start_equals_end.json"))
        stand_in.register("MSFT", ARBITRARY_DATE + timedelta(days=30), ARBITRARY_DATE, load_body("start_after_end.json"))
        yield stand_in


@pytest.fixture
def arbitrary_date() -> datetime:
    return ARBITRARY_DATE
