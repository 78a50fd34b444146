from __future__ import annotations
import json
from datetime import datetime
from pathlib import Path
from typing import Optional
import typer
from rich import print as rprint
from rich.table import Table

from .bootstrap import build_provider, open_store, parse_day, resolve_stock
from .exceptions import ResolutionError
from .logging_config import setup_logging
from .settings import settings
from .stock import Stock

app = typer.Typer(add_completion=False)

def parse_date(s: str) -> datetime:
    try:
        return parse_day(s)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date {s}. Use YYYY-MM-DD") from e

def _resolve(symbol: str, start: str, end: str, retries: int, url: Optional[str]) -> Stock:
    start_d, end_d = parse_date(start), parse_date(end)
    try:
        store = open_store(settings)
        stock = resolve_stock(symbol, start_d, end_d, store, build_provider(settings, retries), url=url)
    except ResolutionError as e:
        rprint(f"[red]Could not get range for {symbol} over {start}-{end}:[/red] {e}")
        raise typer.Exit(code=1)
    if stock.persist_error is not None:
        rprint(f"[yellow]Fetched data was not stored:[/yellow] {stock.persist_error}")
    return stock

@app.callback()
def main(log_level: str = typer.Option(settings.log_level, "--log-level", help="DEBUG, INFO, WARNING...")):
    setup_logging(level=log_level.upper(), log_file=settings.log_file)

@app.command("db")
def db_cmd(action: str = typer.Argument(..., help="init")):
    if action != "init":
        raise typer.BadParameter("Only 'init' is supported")
    open_store(settings)
    rprint("[green]DB initialized.[/green]")

@app.command("range")
def range_cmd(
    symbol: str = typer.Argument(..., help="Ticker symbol, e.g. AMZN"),
    start: str = typer.Option(..., help="YYYY-MM-DD"),
    end: str = typer.Option(..., help="YYYY-MM-DD"),
    as_json: bool = typer.Option(False, "--json", help="Print the JSON body instead of a table"),
    retries: int = typer.Option(0, help="Retry transport failures this many times"),
    url: Optional[str] = typer.Option(None, help="Override the quote provider endpoint"),
):
    stock = _resolve(symbol, start, end, retries, url)
    if as_json:
        typer.echo(json.dumps(stock.to_dict()))
        return

    t = Table(title=f"{stock.symbol} ({stock.source.value if stock.source else '-'})")
    t.add_column("Date")
    t.add_column("Close", justify="right")
    for m in stock.span:
        t.add_row(m.day.isoformat(), f"{m.value:.4f}")
    rprint(t)

@app.command()
def export(
    symbol: str = typer.Argument(...),
    start: str = typer.Option(..., help="YYYY-MM-DD"),
    end: str = typer.Option(..., help="YYYY-MM-DD"),
    out: Path = typer.Option(..., help="CSV file to write"),
    retries: int = typer.Option(0),
    url: Optional[str] = typer.Option(None),
):
    stock = _resolve(symbol, start, end, retries, url)
    out.parent.mkdir(parents=True, exist_ok=True)
    stock.span.to_series(name=stock.symbol).to_csv(out)
    rprint(f"[green]Wrote {len(stock.span)} rows.[/green] {out}")
