from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from sales_engine.config import Settings, get_settings
from sales_engine.domain.queries import FilterSpec
from sales_engine.domain.results import IndexNotReady
from sales_engine.errors import InvalidQueryError, SalesEngineError
from sales_engine.orchestrator import QueryEngine, available_sources
from sales_engine.query.request import parse_request
from sales_engine.reporter import print_options, print_page, print_stats, print_status
from sales_engine.utils.logging import configure_logging

app = typer.Typer(help="Sales query engine CLI.")

SourceOption = typer.Option(None, "--source", help="Record source: csv or postgres.")
DataPathOption = typer.Option(None, "--data-path", "-d", help="CSV file to load (csv source).")


def _settings(source: Optional[str], data_path: Optional[Path]) -> Settings:
    settings = get_settings()
    update: Dict[str, Any] = {}
    if source:
        if source not in available_sources():
            raise typer.BadParameter(
                f"Unknown source '{source}'. Available: {', '.join(available_sources())}",
                param_hint="--source",
            )
        update["data_source"] = source
    if data_path is not None:
        update["data_path"] = data_path
    return settings.model_copy(update=update) if update else settings


def _start_engine(settings: Settings, build_index: bool) -> QueryEngine:
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    engine = QueryEngine.from_settings(settings)
    engine.start(build_index=build_index, wait=build_index)
    return engine


def _fail(exc: SalesEngineError) -> None:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    raise typer.Exit(code=2 if isinstance(exc, InvalidQueryError) else 1)


def _request_params(
    search: Optional[str],
    regions: List[str],
    genders: List[str],
    categories: List[str],
    tags: List[str],
    payment_methods: List[str],
    order_statuses: List[str],
    min_age: Optional[int],
    max_age: Optional[int],
    start_date: Optional[str],
    end_date: Optional[str],
) -> Dict[str, Any]:
    return {
        "search": search,
        "regions": regions,
        "genders": genders,
        "categories": categories,
        "tags": tags,
        "paymentMethods": payment_methods,
        "orderStatuses": order_statuses,
        "minAge": min_age,
        "maxAge": max_age,
        "startDate": start_date,
        "endDate": end_date,
    }


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    source = (
        f"csv:{settings.data_path}"
        if settings.data_source == "csv"
        else f"postgres:{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )
    typer.echo(
        f"source={source} | page_size={settings.default_page_size} "
        f"max_page_size={settings.max_page_size} | "
        f"phone_prefix={settings.phone_prefix_min_length}..{settings.phone_prefix_max_length} "
        f"suffix={settings.phone_suffix_length}"
    )


@app.command()
def query(
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Name or phone text to search for."),
    regions: List[str] = typer.Option([], "--region", "-r", help="Region filter (repeatable)."),
    genders: List[str] = typer.Option([], "--gender", "-g", help="Gender filter (repeatable)."),
    categories: List[str] = typer.Option([], "--category", "-c", help="Product category filter (repeatable)."),
    tags: List[str] = typer.Option([], "--tag", "-t", help="Tag filter (repeatable)."),
    payment_methods: List[str] = typer.Option([], "--payment-method", help="Payment method filter (repeatable)."),
    order_statuses: List[str] = typer.Option([], "--order-status", help="Order status filter (repeatable)."),
    min_age: Optional[int] = typer.Option(None, "--min-age"),
    max_age: Optional[int] = typer.Option(None, "--max-age"),
    start_date: Optional[str] = typer.Option(None, "--start-date", help="Inclusive, YYYY-MM-DD."),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="Inclusive, YYYY-MM-DD."),
    sort_by: str = typer.Option("date", "--sort-by", "-s", help="date, quantity, name or amount."),
    sort_order: str = typer.Option("desc", "--sort-order", "-o", help="asc or desc."),
    page: int = typer.Option(1, "--page", "-p"),
    page_size: Optional[int] = typer.Option(None, "--page-size", "-n"),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON instead of a table."),
    source: Optional[str] = SourceOption,
    data_path: Optional[Path] = DataPathOption,
) -> None:
    """
    Load the dataset, run one query and print the requested page.
    """
    settings = _settings(source, data_path)
    params = _request_params(
        search, regions, genders, categories, tags, payment_methods, order_statuses,
        min_age, max_age, start_date, end_date,
    )
    params.update({"sortBy": sort_by, "sortOrder": sort_order, "page": page, "limit": page_size})

    try:
        filters, sort, pagination = parse_request(params, default_page_size=settings.default_page_size)
        engine = _start_engine(settings, build_index=filters.text_query is not None)
        result = engine.execute_query(filters, sort, pagination)
    except SalesEngineError as exc:
        _fail(exc)
        return

    if as_json:
        typer.echo(result.model_dump_json(by_alias=True, indent=2))
    elif isinstance(result, IndexNotReady):
        typer.secho(result.message, fg=typer.colors.YELLOW, err=True)
    else:
        print_page(result)


@app.command()
def options(
    source: Optional[str] = SourceOption,
    data_path: Optional[Path] = DataPathOption,
) -> None:
    """
    Show the distinct values available for each filter.
    """
    settings = _settings(source, data_path)
    try:
        engine = _start_engine(settings, build_index=False)
    except SalesEngineError as exc:
        _fail(exc)
        return
    print_status(engine.status())
    result = engine.get_aggregates()
    if isinstance(result, IndexNotReady):
        typer.secho(result.message, fg=typer.colors.YELLOW, err=True)
        return
    print_options(result)


@app.command()
def stats(
    search: Optional[str] = typer.Option(None, "--search", "-q"),
    regions: List[str] = typer.Option([], "--region", "-r"),
    genders: List[str] = typer.Option([], "--gender", "-g"),
    categories: List[str] = typer.Option([], "--category", "-c"),
    tags: List[str] = typer.Option([], "--tag", "-t"),
    payment_methods: List[str] = typer.Option([], "--payment-method"),
    order_statuses: List[str] = typer.Option([], "--order-status"),
    min_age: Optional[int] = typer.Option(None, "--min-age"),
    max_age: Optional[int] = typer.Option(None, "--max-age"),
    start_date: Optional[str] = typer.Option(None, "--start-date"),
    end_date: Optional[str] = typer.Option(None, "--end-date"),
    source: Optional[str] = SourceOption,
    data_path: Optional[Path] = DataPathOption,
) -> None:
    """
    Show global statistics, or statistics over the filtered records.
    """
    settings = _settings(source, data_path)
    params = _request_params(
        search, regions, genders, categories, tags, payment_methods, order_statuses,
        min_age, max_age, start_date, end_date,
    )

    try:
        filters: FilterSpec = parse_request(params)[0]
        engine = _start_engine(settings, build_index=filters.text_query is not None)
        result = engine.get_stats(filters)
    except SalesEngineError as exc:
        _fail(exc)
        return

    if isinstance(result, IndexNotReady):
        typer.secho(result.message, fg=typer.colors.YELLOW, err=True)
        return
    print_stats(result, title="Sales Statistics (filtered)" if not filters.is_empty else "Sales Statistics")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
