"""
Command-line interface for Portfolio Radar.

Refreshes the seed radar, dividend calendar, health-sector watch list or a
portfolio file through the search model and prints the merged result. The
vision command edits a vision board image through a Gemini image model.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Coroutine, List, Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from portfolio_radar import seeds
from portfolio_radar.config import get_settings
from portfolio_radar.models import PortfolioItem
from portfolio_radar.services import create_enrichment_service
from portfolio_radar.signals import growth_probability, portfolio_value, radar_alert
from portfolio_radar.utils.errors import (
    ConfigurationError,
    InvalidSubjectsError,
    QuotaExceededError,
    RadarException,
)
from portfolio_radar.utils.logging import setup_logging
from portfolio_radar.vision import create_vision_editor, guess_image_type

app = typer.Typer(
    name="portfolio-radar",
    help="Portfolio dashboard data refreshed by a search-enabled AI model",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Search model, e.g. gemini-2.5-flash"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
):
    """Configure logging and the search model."""
    settings = get_settings()
    if model:
        settings.search_model = model
    setup_logging(log_level=log_level)


def _fmt(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return "-"
    return f"{value:,.2f}{(' ' + suffix) if suffix else ''}"


def _refresh(operation: Callable[[Callable[[int], None]], Coroutine[Any, Any, List[Any]]], label: str) -> List[Any]:
    """Run one refresh with a progress bar, turning fatal errors into exit codes."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task_id = progress.add_task(label, total=100)
        try:
            return asyncio.run(operation(lambda percent: progress.update(task_id, completed=percent)))
        except QuotaExceededError as e:
            console.print(f"[red]{e.message}[/red]")
        except (ConfigurationError, InvalidSubjectsError) as e:
            console.print(f"[red]Error:[/red] {e}")
        except RadarException:
            console.print("[red]Could not complete the refresh. Some data might be missing; please try again.[/red]")
    raise typer.Exit(1)


def _dump(items: List[Any]) -> None:
    console.print_json(json.dumps([item.model_dump(mode="json", by_alias=True) for item in items]))


@app.command()
def stocks(
    batch_size: Optional[int] = typer.Option(None, "--batch-size", "-b", help="Stocks per request"),
    delay: Optional[float] = typer.Option(None, "--delay", "-d", help="Seconds between requests"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Refresh live prices and targets for the stock radar."""
    service = _service()
    updated = _refresh(
        lambda cb: service.analyze_stocks(seeds.initial_stocks(), cb, max_batch_size=batch_size, batch_delay=delay),
        "Updating market data...",
    )
    if as_json:
        _dump(updated)
        return

    table = Table(title="Stock Radar")
    table.add_column("Company", style="bold")
    table.add_column("Reference", justify="right")
    table.add_column("Live", justify="right")
    table.add_column("Exit", justify="right")
    table.add_column("Accumulate", justify="right")
    table.add_column("Alert")
    table.add_column("AI view")
    styles = {"VENDE!": "red", "COMPRA!": "green", "MANTENER": "dim"}
    for stock in updated:
        alert = radar_alert(stock)
        table.add_row(
            stock.name,
            _fmt(stock.current_price, stock.currency),
            _fmt(stock.market_price, stock.currency),
            _fmt(stock.exit_price),
            _fmt(stock.accumulative_price),
            f"[{styles[alert.value]}]{alert.value}[/{styles[alert.value]}]",
            stock.recommendation or "-",
        )
    console.print(table)


@app.command()
def dividends(
    batch_size: Optional[int] = typer.Option(None, "--batch-size", "-b", help="Companies per request"),
    delay: Optional[float] = typer.Option(None, "--delay", "-d", help="Seconds between requests"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Look up usual dividend payment months."""
    service = _service()
    calendar = _refresh(
        lambda cb: service.fetch_dividends(seeds.DIVIDEND_COMPANIES, cb, max_batch_size=batch_size, batch_delay=delay),
        "Scanning dividend calendars...",
    )
    if as_json:
        _dump(calendar)
        return

    table = Table(title="Dividend Calendar")
    table.add_column("Company", style="bold")
    table.add_column("Payment months")
    for entry in calendar:
        table.add_row(entry.name, ", ".join(entry.payment_months) or "-")
    console.print(table)

    missing = [entry.name for entry in calendar if not entry.payment_months]
    if missing:
        console.print(f"[yellow]No data for {len(missing)} compan{'y' if len(missing) == 1 else 'ies'}.[/yellow]")


@app.command()
def health(
    batch_size: Optional[int] = typer.Option(None, "--batch-size", "-b", help="Companies per request"),
    delay: Optional[float] = typer.Option(None, "--delay", "-d", help="Seconds between requests"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Refresh buy signals for the health-sector watch list."""
    service = _service()
    updated = _refresh(
        lambda cb: service.analyze_health_sector(
            seeds.initial_health_sector(), cb, max_batch_size=batch_size, batch_delay=delay
        ),
        "Analyzing defensive health stocks...",
    )
    if as_json:
        _dump(updated)
        return

    table = Table(title="Health Sector: Tech Bubble Rotation Radar")
    table.add_column("Company", style="bold")
    table.add_column("Subsector")
    table.add_column("Growth", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Signal")
    table.add_column("Note")
    for company in sorted(updated, key=lambda c: growth_probability(c) or 0, reverse=True):
        table.add_row(
            company.company,
            company.subsector,
            company.growth_prob,
            _fmt(company.current_price, company.currency or ""),
            _fmt(company.target_price),
            company.buy_signal or "-",
            company.defensive_note or "-",
        )
    console.print(table)


@app.command()
def portfolio(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of {isin, company, quantity}"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", "-b", help="Positions per request"),
    delay: Optional[float] = typer.Option(None, "--delay", "-d", help="Seconds between requests"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """Analyze a portfolio file, one request per position by default."""
    items = _load_portfolio(path)
    service = _service()
    analyzed = _refresh(
        lambda cb: service.analyze_portfolio(items, cb, max_batch_size=batch_size, batch_delay=delay),
        "Analyzing portfolio...",
    )
    if as_json:
        _dump(analyzed)
        return

    table = Table(title=f"Portfolio ({path.name})")
    table.add_column("ISIN")
    table.add_column("Company", style="bold")
    table.add_column("Qty", justify="right")
    table.add_column("Price EUR", justify="right")
    table.add_column("Value EUR", justify="right")
    table.add_column("Action")
    table.add_column("3-5y outlook")
    table.add_column("Tip")
    for item in analyzed:
        table.add_row(
            item.isin or "-",
            item.company,
            f"{item.quantity:g}",
            _fmt(item.current_price),
            _fmt(item.current_value),
            item.action or "-",
            item.forecast_3_to_5_years or "-",
            item.optimization_tip or "-",
        )
    console.print(table)
    console.print(f"Total value: [bold]{_fmt(portfolio_value(analyzed), 'EUR')}[/bold]")


@app.command()
def vision(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image to edit"),
    prompt: str = typer.Argument(..., help='Edit instruction, e.g. "add a sunset over the sea"'),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the result"),
):
    """Edit a vision board image with a text instruction (Gemini only)."""
    mime_type = guess_image_type(image)
    if mime_type is None:
        raise typer.BadParameter(f"{image} is not a recognised image file")
    output = output or image.with_name(f"{image.stem}_vision.png")

    try:
        editor = create_vision_editor()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    try:
        with console.status(f"Generating image with {editor.model}..."):
            result = asyncio.run(editor.edit(image.read_bytes(), prompt, mime_type))
    except QuotaExceededError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    except RadarException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    output.write_bytes(result)
    console.print(f"Saved [bold]{output}[/bold]")


def _service():
    try:
        return create_enrichment_service()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _load_portfolio(path: Path) -> List[PortfolioItem]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        items = TypeAdapter(List[PortfolioItem]).validate_python(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        raise typer.BadParameter(f"{path} is not a valid portfolio file: {e}")
    for item in items:
        if not item.company:
            item.company = item.isin or ""
    if not items:
        raise typer.BadParameter(f"{path} contains no positions")
    return items


if __name__ == "__main__":
    app()
