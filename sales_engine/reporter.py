from __future__ import annotations

from decimal import Decimal
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from sales_engine.domain.results import EngineStatus, FilterOptions, PageResult, SalesStats


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def print_page(result: PageResult, console: Optional[Console] = None) -> None:
    """
    Render one page of records as a rich table.

    The caption carries the pagination metadata and, for text queries, which
    search strategy produced the candidates.
    """
    console = console or Console()

    if not result.records:
        console.print(
            f"[yellow]No records on page {result.current_page} "
            f"({result.total_items:,} matching in total).[/yellow]"
        )
        return

    caption = (
        f"Page {result.current_page}/{result.total_pages} │ "
        f"{result.total_items:,} matching │ "
        f"prev={'yes' if result.has_prev_page else 'no'} "
        f"next={'yes' if result.has_next_page else 'no'}"
    )
    if result.search_strategy:
        caption = f"{caption} │ search: {result.search_strategy}"
    if result.sort_skipped:
        caption = f"{caption} │ natural order"

    table = Table(title="Sales Records", box=box.ROUNDED, caption=caption)

    table.add_column("ID", justify="right", style="cyan", no_wrap=True)
    table.add_column("Date", style="green", no_wrap=True)
    table.add_column("Customer", style="bold")
    table.add_column("Phone", style="dim")
    table.add_column("Region", style="magenta")
    table.add_column("Age", justify="right")
    table.add_column("Category", style="blue")
    table.add_column("Qty", justify="right")
    table.add_column("Final Amount", justify="right", style="bold green")
    table.add_column("Status", style="yellow")

    for record in result.records:
        table.add_row(
            str(record.id),
            record.date.isoformat() if record.date else "-",
            record.customer_name,
            record.phone_number,
            record.customer_region,
            str(record.age),
            record.product_category,
            str(record.quantity),
            _money(record.final_amount),
            record.order_status,
        )

    console.print(table)


def print_options(options: FilterOptions, console: Optional[Console] = None) -> None:
    """Render the available filter values, one row per filterable field."""
    console = console or Console()

    table = Table(title="Filter Options", box=box.ROUNDED)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Values")

    table.add_row("Regions", ", ".join(options.regions))
    table.add_row("Genders", ", ".join(options.genders))
    table.add_row("Categories", ", ".join(options.categories))
    table.add_row("Tags", ", ".join(options.tags))
    table.add_row("Payment Methods", ", ".join(options.payment_methods))
    table.add_row("Order Statuses", ", ".join(options.order_statuses))
    table.add_row("Age Range", f"{options.age_range.min} - {options.age_range.max}")
    table.add_row(
        "Date Range",
        f"{options.date_range.min.isoformat()} - {options.date_range.max.isoformat()}",
    )

    console.print(table)


def print_stats(stats: SalesStats, title: str = "Sales Statistics", console: Optional[Console] = None) -> None:
    console = console or Console()

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="bold green")

    table.add_row("Total Records", f"{stats.total_records:,}")
    table.add_row("Total Amount", _money(stats.total_amount))
    table.add_row("Total Quantity", f"{stats.total_quantity:,}")
    table.add_row("Total Discount", _money(stats.total_discount))
    table.add_row("Average Order Value", _money(stats.average_order_value))

    console.print(table)


def print_status(status: EngineStatus, console: Optional[Console] = None) -> None:
    console = console or Console()
    index_state = "ready" if status.index_ready else ("building" if status.index_building else "not built")
    console.print(
        f"[bold]Load:[/bold] {status.load_phase} │ "
        f"[bold]Records:[/bold] {status.records_loaded:,} │ "
        f"[bold]Version:[/bold] {status.collection_version} │ "
        f"[bold]Index:[/bold] {index_state}"
    )


__all__ = ["print_page", "print_options", "print_stats", "print_status"]
