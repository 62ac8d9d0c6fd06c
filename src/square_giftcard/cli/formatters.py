"""Output formatters for CLI commands."""

import csv
import io
import json
from collections.abc import Callable, Sequence
from typing import Any, TypeAlias

from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from square_giftcard.cli.config import OutputFormat
from square_giftcard.models.payment_links import PaymentLink
from square_giftcard.money import from_minor_units

console = Console()
error_console = Console(stderr=True)

LINK_COLUMNS = ["id", "url", "version", "order_id", "created_at"]

Row: TypeAlias = dict[str, Any]


def _to_rows(data: BaseModel | Sequence[BaseModel] | Row | Sequence[Row]) -> list[Row]:
    """Normalize models and dicts into JSON-safe rows."""
    items: Sequence[Any] = [data] if isinstance(data, BaseModel | dict) else data
    return [
        item.model_dump(mode="json", exclude_none=True) if isinstance(item, BaseModel) else item
        for item in items
    ]


def _columns_for(rows: list[Row], columns: list[str] | None) -> list[str]:
    if columns is not None:
        return columns
    # Union of keys, in first-seen order
    seen: dict[str, None] = {}
    for row in rows:
        seen.update(dict.fromkeys(row))
    return list(seen)


def _render_json(rows: list[Row], title: str | None, columns: list[str] | None) -> None:
    payload: Any = rows[0] if len(rows) == 1 else rows
    console.print_json(json.dumps(payload, default=str))


def _render_csv(rows: list[Row], title: str | None, columns: list[str] | None) -> None:
    if not rows:
        return

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=_columns_for(rows, columns), extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    console.print(buffer.getvalue(), end="", markup=False, highlight=False, soft_wrap=True)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def _render_table(rows: list[Row], title: str | None, columns: list[str] | None) -> None:
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    table = Table(title=title, header_style="bold")
    names = _columns_for(rows, columns)
    for name in names:
        numeric = all(isinstance(row.get(name), int | float) for row in rows if name in row)
        table.add_column(name.replace("_", " ").title(), justify="right" if numeric else "left")

    for row in rows:
        table.add_row(*(_cell(row.get(name)) for name in names))

    console.print(table)


_RENDERERS: dict[OutputFormat, Callable[[list[Row], str | None, list[str] | None], None]] = {
    OutputFormat.TABLE: _render_table,
    OutputFormat.JSON: _render_json,
    OutputFormat.CSV: _render_csv,
}


def format_output(
    data: BaseModel | Sequence[BaseModel] | Row | Sequence[Row],
    output_format: OutputFormat,
    *,
    title: str | None = None,
    columns: list[str] | None = None,
) -> None:
    """Print models or rows as a rich table, JSON or CSV.

    Args:
        data: A model, a dict, or a sequence of either
        output_format: Output format (table, json, csv)
        title: Optional title for table output
        columns: Optional column names and order (table/csv)
    """
    _RENDERERS[output_format](_to_rows(data), title, columns)


def link_row(link: PaymentLink) -> Row:
    """Flatten a payment link for table/csv output."""
    row: Row = {
        "id": link.id,
        "url": link.url,
        "version": link.version,
        "order_id": link.order_id,
        "created_at": link.created_at.strftime("%Y-%m-%d %H:%M") if link.created_at else "",
    }
    if link.description:
        row["description"] = link.description
    if total := _order_total(link):
        row["total"] = total
    return row


def _order_total(link: PaymentLink) -> str | None:
    """Order total from related resources, e.g. "49.99 USD"."""
    orders = (link.related_resources or {}).get("orders") or []
    money = orders[0].get("total_money") if orders else None
    if not money or "amount" not in money:
        return None
    return f"{from_minor_units(money['amount'])} {money.get('currency', '')}".strip()


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[cyan]›[/cyan] {message}")
