"""matprice CLI - material price ledger and bulk price import.

Commands:
- init: Initialize database schema
- add-source / sources: Register and list price sources
- add-material: Register a catalog material
- import-file: Import a supplier price list (CSV/XLSX)
- import-text: Import tab-separated lines pasted from a supplier PDF
- prices: Show the price history of a material
- current-price: Show the price in force on a given day
- add-price / update-price / delete-price: Manual price maintenance
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from matprice.config import get_config
from matprice.core.exceptions import MatpriceError
from matprice.core.logging import configure_logging
from matprice.db.connection import close_db, init_db, store_session
from matprice.ledger.prices import PriceLedger
from matprice.models import PriceRecord, PriceRecordDraft, PriceRecordUpdate
from matprice.pipeline.orchestrator import ImportOrchestrator
from matprice.pipeline.types import ImportResult
from matprice.store.base import PriceStore

app = typer.Typer(
    name="matprice",
    help="matprice - Temporal material prices and supplier price-list import",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging(level=log_level or config.log_level, log_format=config.log_format)


def _run(coro) -> None:
    """Run a command coroutine, report matprice errors and release the engine."""

    async def _wrapped():
        try:
            await coro
        finally:
            await close_db()

    try:
        asyncio.run(_wrapped())
    except MatpriceError as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1) from e


def _parse_date(value: str | None, option: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date (YYYY-MM-DD): {value}", param_hint=option) from e


def _parse_amount(value: str | None, option: str) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise typer.BadParameter(f"Invalid amount: {value}", param_hint=option) from e


def _print_import_result(result: ImportResult) -> None:
    report = result.report
    if result.price_source is not None:
        console.print(f"  Price source: {result.price_source.name}")
    console.print(f"  Rows parsed: {result.rows_parsed} ({result.duration_seconds:.2f}s)")

    if report.failed:
        console.print(f"[red]✗[/red] {report.summary}")
    elif report.error_count:
        console.print(f"[yellow]⚠[/yellow] {report.summary}")
    elif report.success_count:
        console.print(f"[bold green]✓[/bold green] {report.summary}")
    else:
        console.print(f"[yellow]{report.summary}[/yellow]")

    for failure in report.visible_errors:
        console.print(f"    {failure}", style="dim")
    if report.error_count and not report.visible_errors:
        console.print(
            f"    [dim]{report.error_count} errors, too many to list "
            f"(limit {report.max_reported_errors})[/dim]"
        )


async def _source_names(store: PriceStore) -> dict[UUID, str]:
    return {source.id: source.name for source in await store.list_price_sources()}


def _source_label(names: dict[UUID, str], price_source_id: UUID) -> str:
    return escape(names.get(price_source_id, str(price_source_id)))


def _prices_table(
    title: str,
    records: list[PriceRecord],
    names: dict[UUID, str],
    current: PriceRecord | None = None,
) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Price", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_column("Currency")
    table.add_column("Source")
    table.add_column("Valid from")
    table.add_column("Valid to")
    table.add_column("Comment")

    for record in records:
        marker = " ●" if current is not None and record.id == current.id else ""
        table.add_row(
            str(record.id) + marker,
            f"{record.price:,.2f}",
            f"{record.price_min:,.2f}" if record.price_min is not None else "-",
            f"{record.price_max:,.2f}" if record.price_max is not None else "-",
            record.currency,
            _source_label(names, record.price_source_id),
            record.valid_from.isoformat(),
            record.valid_to.isoformat() if record.valid_to else "open",
            record.comment or "",
        )
    return table


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="add-source")
def add_source_cmd(
    name: str = typer.Argument(..., help="Price source name (unique)"),
    source_type: str | None = typer.Option(None, "--type", help="Source type (supplier, index, ...)"),
):
    """Register a price source."""

    async def _add():
        async with store_session() as store:
            source = await store.add_price_source(name, source_type)
        console.print(f"[bold green]✓[/bold green] Price source {source.name}: {source.id}")

    _run(_add())


@app.command()
def sources():
    """List registered price sources."""

    async def _list():
        async with store_session() as store:
            items = await store.list_price_sources()

        if not items:
            console.print("[yellow]No price source registered[/yellow]")
            return

        table = Table(title="Price sources")
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Type")
        for source in items:
            table.add_row(str(source.id), source.name, source.type or "")
        console.print(table)

    _run(_list())


@app.command(name="add-material")
def add_material_cmd(
    abbreviation: str = typer.Argument(..., help="Material abbreviation (e.g. PET)"),
    description: str | None = typer.Option(None, "--description", help="Material description"),
    unit: str | None = typer.Option(None, "--unit", help="Pricing unit (kg, t, ...)"),
):
    """Register a catalog material."""

    async def _add():
        async with store_session() as store:
            material = await store.add_material(abbreviation, description, unit)
        console.print(f"[bold green]✓[/bold green] Material {abbreviation}: {material.id}")

    _run(_add())


@app.command(name="import-file")
def import_file_cmd(
    file_path: Path = typer.Argument(..., help="Price list (CSV/XLSX)"),
    source: UUID | None = typer.Option(None, "--source", help="Price source ID"),
    valid_from: str | None = typer.Option(None, "--valid-from", help="Validity start (YYYY-MM-DD), default today"),
    currency: str | None = typer.Option(None, "--currency", help="Currency code, default from config"),
):
    """Import a supplier price list."""
    start = _parse_date(valid_from, "--valid-from")
    console.print(f"[bold]Importing price list:[/bold] {file_path}")

    async def _import():
        async with store_session() as store:
            orchestrator = ImportOrchestrator(store, store, get_config().imports)
            result = await orchestrator.import_file(
                file_path, price_source_id=source, valid_from=start, currency=currency
            )
        _print_import_result(result)

    _run(_import())


@app.command(name="import-text")
def import_text_cmd(
    input_file: str = typer.Argument(..., help="Text file with tab-separated lines, or - for stdin"),
    source: UUID | None = typer.Option(None, "--source", help="Price source ID"),
    valid_from: str | None = typer.Option(None, "--valid-from", help="Validity start (YYYY-MM-DD), default today"),
    filename: str | None = typer.Option(None, "--filename", help="Origin file name recorded on each price"),
):
    """Import price lines pasted from a supplier document."""
    start = _parse_date(valid_from, "--valid-from")

    if input_file == "-":
        text = sys.stdin.read()
        origin = filename
    else:
        path = Path(input_file)
        if not path.exists():
            raise typer.BadParameter(f"File not found: {path}", param_hint="INPUT_FILE")
        text = path.read_text(encoding="utf-8")
        origin = filename or path.name

    async def _import():
        async with store_session() as store:
            orchestrator = ImportOrchestrator(store, store, get_config().imports)
            result = await orchestrator.import_text(
                text, price_source_id=source, valid_from=start, filename=origin
            )
        _print_import_result(result)

    _run(_import())


@app.command()
def prices(
    material_id: UUID = typer.Argument(..., help="Material ID"),
):
    """Show price history of a material, marking the price in force today."""

    async def _prices():
        async with store_session() as store:
            ledger = PriceLedger(store)
            history = await ledger.history(material_id)
            current = await ledger.effective_price(material_id)
            names = await _source_names(store)

        if not history:
            console.print("[yellow]No price recorded for this material[/yellow]")
            return

        console.print(_prices_table(f"Prices of {material_id}", history, names, current))
        if current is not None:
            console.print(
                f"Current price: {current.price:,.2f} {current.currency} "
                f"({_source_label(names, current.price_source_id)})"
            )
        else:
            console.print("[yellow]No price in force today[/yellow]")

    _run(_prices())


@app.command(name="current-price")
def current_price_cmd(
    material_id: UUID = typer.Argument(..., help="Material ID"),
    as_of: str | None = typer.Option(None, "--as-of", help="Day to evaluate (YYYY-MM-DD), default today"),
    source: UUID | None = typer.Option(None, "--source", help="Restrict to a price source"),
):
    """Show the price in force for a material on a given day."""
    day = _parse_date(as_of, "--as-of") or date.today()

    async def _current():
        async with store_session() as store:
            record = await PriceLedger(store).effective_price(
                material_id, as_of=day, price_source_id=source
            )
            names = await _source_names(store)

        if record is None:
            console.print(f"[yellow]No price in force on {day.isoformat()}[/yellow]")
            raise typer.Exit(code=1)

        console.print(
            f"[bold]{record.price:,.2f} {record.currency}[/bold] "
            f"({_source_label(names, record.price_source_id)}) on {day.isoformat()}"
        )
        if record.price_min is not None or record.price_max is not None:
            console.print(f"  Range: {record.price_min or '-'} .. {record.price_max or '-'}")
        console.print(f"  Valid: {record.valid_from.isoformat()} .. {record.valid_to or 'open'}")
        console.print(f"  Record: {record.id}", style="dim")

    _run(_current())


@app.command(name="add-price")
def add_price_cmd(
    material_id: UUID = typer.Argument(..., help="Material ID"),
    price: str = typer.Argument(..., help="Price"),
    source: UUID = typer.Option(..., "--source", help="Price source ID"),
    price_min: str | None = typer.Option(None, "--min", help="Minimum price"),
    price_max: str | None = typer.Option(None, "--max", help="Maximum price"),
    currency: str | None = typer.Option(None, "--currency", help="Currency code, default from config"),
    valid_from: str | None = typer.Option(None, "--valid-from", help="Validity start (YYYY-MM-DD), default today"),
    valid_to: str | None = typer.Option(None, "--valid-to", help="Validity end (YYYY-MM-DD), default open"),
    comment: str | None = typer.Option(None, "--comment", help="Free-text comment"),
):
    """Record a price manually."""
    config = get_config()
    draft = PriceRecordDraft(
        material_id=material_id,
        price_source_id=source,
        price=_parse_amount(price, "PRICE"),
        price_min=_parse_amount(price_min, "--min"),
        price_max=_parse_amount(price_max, "--max"),
        currency=currency or config.imports.default_currency,
        valid_from=_parse_date(valid_from, "--valid-from") or date.today(),
        valid_to=_parse_date(valid_to, "--valid-to"),
        comment=comment,
        created_by=config.imports.created_by,
    )

    async def _add():
        async with store_session() as store:
            record = await PriceLedger(store).create(draft)
        console.print(f"[bold green]✓[/bold green] Price recorded: {record.id}")

    _run(_add())


@app.command(name="update-price")
def update_price_cmd(
    price_id: UUID = typer.Argument(..., help="Price record ID"),
    price: str | None = typer.Option(None, "--price", help="New price"),
    price_min: str | None = typer.Option(None, "--min", help="New minimum price"),
    price_max: str | None = typer.Option(None, "--max", help="New maximum price"),
    currency: str | None = typer.Option(None, "--currency", help="New currency code"),
    valid_from: str | None = typer.Option(None, "--valid-from", help="New validity start"),
    valid_to: str | None = typer.Option(None, "--valid-to", help="New validity end"),
    open_ended: bool = typer.Option(False, "--open-ended", help="Clear the validity end"),
    comment: str | None = typer.Option(None, "--comment", help="New comment"),
):
    """Edit a price record. Material and price source cannot change."""
    fields: dict = {
        "price": _parse_amount(price, "--price"),
        "price_min": _parse_amount(price_min, "--min"),
        "price_max": _parse_amount(price_max, "--max"),
        "currency": currency,
        "valid_from": _parse_date(valid_from, "--valid-from"),
        "valid_to": _parse_date(valid_to, "--valid-to"),
        "comment": comment,
    }
    changes = {name: value for name, value in fields.items() if value is not None}
    if open_ended:
        changes["valid_to"] = None
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(code=0)

    async def _update():
        async with store_session() as store:
            record = await PriceLedger(store).update(
                price_id, PriceRecordUpdate(**changes)
            )
        console.print(
            f"[bold green]✓[/bold green] Updated {record.id}: "
            f"{record.price:,.2f} {record.currency} from {record.valid_from.isoformat()}"
        )

    _run(_update())


@app.command(name="delete-price")
def delete_price_cmd(
    price_id: UUID = typer.Argument(..., help="Price record ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a price record."""
    if not yes:
        typer.confirm(f"Delete price record {price_id}?", abort=True)

    async def _delete():
        async with store_session() as store:
            await PriceLedger(store).delete(price_id)
        console.print(f"[bold green]✓[/bold green] Deleted {price_id}")

    _run(_delete())


if __name__ == "__main__":
    app()
