"""
Data generation and loading script for the sales query engine.

Writes a deterministic synthetic sales CSV (the engine's primary source) and
optionally loads it into the ``public.sales`` table with Postgres COPY, for
running the engine with ``DATA_SOURCE=postgres``.
"""

from __future__ import annotations

import datetime as dt
import sys
import time
from pathlib import Path
from typing import Optional

import psycopg
import typer

from sales_engine.infrastructure.db_factory import build_dsn
from sales_engine.sample_data import write_csv
from sales_engine.store.sources import SALES_COLUMNS

app = typer.Typer(help="Generate synthetic sales data (CSV) and optionally load it into Postgres.")

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS public.sales (
    id                  BIGINT PRIMARY KEY,
    date                DATE,
    customer_id         TEXT NOT NULL DEFAULT '',
    customer_name       TEXT NOT NULL DEFAULT '',
    phone_number        TEXT NOT NULL DEFAULT '',
    gender              TEXT NOT NULL DEFAULT '',
    age                 INTEGER NOT NULL DEFAULT 0,
    customer_region     TEXT NOT NULL DEFAULT '',
    customer_type       TEXT NOT NULL DEFAULT '',
    product_id          TEXT NOT NULL DEFAULT '',
    product_name        TEXT NOT NULL DEFAULT '',
    brand               TEXT NOT NULL DEFAULT '',
    product_category    TEXT NOT NULL DEFAULT '',
    tags                TEXT NOT NULL DEFAULT '',
    quantity            INTEGER NOT NULL DEFAULT 0,
    price_per_unit      NUMERIC(12, 2) NOT NULL DEFAULT 0,
    discount_percentage NUMERIC(5, 2) NOT NULL DEFAULT 0,
    total_amount        NUMERIC(14, 2) NOT NULL DEFAULT 0,
    final_amount        NUMERIC(14, 2) NOT NULL DEFAULT 0,
    payment_method      TEXT NOT NULL DEFAULT '',
    order_status        TEXT NOT NULL DEFAULT '',
    delivery_type       TEXT NOT NULL DEFAULT '',
    store_id            TEXT NOT NULL DEFAULT '',
    store_location      TEXT NOT NULL DEFAULT '',
    salesperson_id      TEXT NOT NULL DEFAULT '',
    employee_name       TEXT NOT NULL DEFAULT ''
);
"""


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _copy_into_db(dsn: str, csv_path: Path, truncate: bool) -> None:
    # CSV columns are written in SALES_COLUMNS order; COPY maps them by position.
    columns = ", ".join(SALES_COLUMNS)
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(CREATE_TABLE_SQL)
            if truncate:
                cur.execute("TRUNCATE public.sales;")
            with cur.copy(
                f"COPY public.sales ({columns}) FROM STDIN WITH (FORMAT csv, HEADER TRUE)"
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()


@app.command()
def main(
    rows: int = typer.Option(
        100_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    end_date: Optional[str] = typer.Option(
        None,
        "--end-date",
        help="Latest transaction date (YYYY-MM-DD); dates span the two years before it.",
    ),
    output: Path = typer.Option(
        Path("data/sales_data.csv"),
        "--output",
        "-o",
        help="CSV output path.",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    load: bool = typer.Option(
        False,
        "--load",
        help="Also load the CSV into public.sales (replacing its contents).",
    ),
) -> None:
    """
    Generate synthetic sales data and optionally load it into Postgres using COPY.
    """
    start = time.perf_counter()
    output.parent.mkdir(parents=True, exist_ok=True)
    last_day = dt.date.fromisoformat(end_date) if end_date else None

    typer.echo(f"Generating {rows:,} rows -> {output} (batch={batch_size}, seed={seed})")
    write_csv(output, rows=rows, seed=seed, batch_size=batch_size, end_date=last_day)
    gen_duration = time.perf_counter() - start
    typer.echo(
        f"CSV generation completed in {gen_duration:.2f}s ({rows / gen_duration:,.0f} rows/s)"
    )

    if not load:
        return

    load_start = time.perf_counter()
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(_build_dsn(dsn), output, truncate=True)
    load_duration = time.perf_counter() - load_start

    total_duration = time.perf_counter() - start
    typer.echo(
        f"Load completed in {load_duration:.2f}s. Total time {total_duration:.2f}s "
        f"({rows / total_duration:,.0f} rows/s overall)."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
