"""
Record sources consumed by the record store.

A source yields raw rows (mappings of column name to value); the store owns
normalization. Concrete sources implement the ``RecordSource`` protocol:

- ``CsvRecordSource``: the sales CSV export (primary source)
- ``PostgresRecordSource``: the ``public.sales`` table, streamed with a
  server-side cursor; an alternate backend acting only as a data source
- ``InMemoryRecordSource``: rows already in memory (tests, embedding)

Any failure to read a source is raised as ``SourceLoadError``.
"""

from __future__ import annotations

import abc
import csv
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Protocol, runtime_checkable

import psycopg
from psycopg.rows import dict_row

from sales_engine.config import get_settings
from sales_engine.errors import SourceLoadError
from sales_engine.infrastructure.db_factory import apply_statement_timeout, get_sync_connection
from sales_engine.utils.logging import get_logger

log = get_logger(__name__)

RawRow = Mapping[str, Any]

SALES_COLUMNS = (
    "id",
    "date",
    "customer_id",
    "customer_name",
    "phone_number",
    "gender",
    "age",
    "customer_region",
    "customer_type",
    "product_id",
    "product_name",
    "brand",
    "product_category",
    "tags",
    "quantity",
    "price_per_unit",
    "discount_percentage",
    "total_amount",
    "final_amount",
    "payment_method",
    "order_status",
    "delivery_type",
    "store_id",
    "store_location",
    "salesperson_id",
    "employee_name",
)


@runtime_checkable
class RecordSource(Protocol):
    """
    Common interface of every record source.

    Attributes
    ----------
    name : str
        A short human-friendly description used in logs and errors.
    """

    name: str

    def load(self) -> Iterator[RawRow]:
        """
        Yield raw rows in source order.

        Raises
        ------
        SourceLoadError
            If the source cannot be read.
        """
        ...


class AbstractRecordSource(abc.ABC):
    """Optional ABC helper for class-based sources."""

    name: str

    @abc.abstractmethod
    def load(self) -> Iterator[RawRow]:  # pragma: no cover - interface only
        raise NotImplementedError


class CsvRecordSource(AbstractRecordSource):
    """Stream rows from a CSV file with a header row; a leading byte-order mark is dropped."""

    def __init__(self, path: Path | str, encoding: str = "utf-8-sig") -> None:
        self.path = Path(path)
        self.encoding = encoding
        self.name = f"csv:{self.path}"

    def load(self) -> Iterator[RawRow]:
        try:
            with self.path.open("r", newline="", encoding=self.encoding) as f:
                reader = csv.DictReader(f)
                if reader.fieldnames is None:
                    raise SourceLoadError(self.name, "file has no header row")
                yield from reader
        except (OSError, csv.Error, UnicodeDecodeError) as exc:
            raise SourceLoadError(self.name, str(exc)) from exc


class InMemoryRecordSource(AbstractRecordSource):
    """Serve rows that are already in memory."""

    def __init__(self, rows: Iterable[RawRow], name: str = "memory") -> None:
        self._rows: List[RawRow] = list(rows)
        self.name = name

    def load(self) -> Iterator[RawRow]:
        return iter(self._rows)


class PostgresRecordSource(AbstractRecordSource):
    """
    Stream the ``public.sales`` table through a named (server-side) cursor
    with ``fetchmany`` batching, so the client never buffers the whole table
    in one result set.
    """

    def __init__(
        self,
        batch_size: Optional[int] = None,
        dsn_override: Optional[str] = None,
        table: str = "public.sales",
    ) -> None:
        settings = get_settings()
        self.batch_size = batch_size or settings.db_fetch_batch_size
        self.statement_timeout_ms = settings.db_statement_timeout_ms
        self._dsn_override = dsn_override
        self.table = table
        self.name = f"postgres:{table}"

    def _query(self) -> str:
        return f"SELECT {', '.join(SALES_COLUMNS)} FROM {self.table} ORDER BY id;"

    def load(self) -> Iterator[RawRow]:
        try:
            conn = get_sync_connection(self._dsn_override)
        except psycopg.Error as exc:
            raise SourceLoadError(self.name, str(exc)) from exc

        rows_read = 0
        try:
            with conn.cursor() as setup:
                apply_statement_timeout(setup, self.statement_timeout_ms)
            with conn.cursor(name="sales_source", row_factory=dict_row) as cur:
                cur.execute(self._query())
                while True:
                    batch = cur.fetchmany(self.batch_size)
                    if not batch:
                        break
                    rows_read += len(batch)
                    yield from batch
        except psycopg.Error as exc:
            raise SourceLoadError(self.name, str(exc)) from exc
        finally:
            conn.close()
            log.debug("Postgres source closed", extra={"source": self.name, "rows": rows_read})


__all__ = [
    "RawRow",
    "RecordSource",
    "AbstractRecordSource",
    "CsvRecordSource",
    "InMemoryRecordSource",
    "PostgresRecordSource",
    "SALES_COLUMNS",
]
