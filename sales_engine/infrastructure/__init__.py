"""
Infrastructure package for the sales query engine.

Centralizes database connectivity for the PostgreSQL record source. Keep this
layer focused on I/O and resource management, decoupled from query logic.
"""

from sales_engine.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    get_sync_connection,
)

__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "get_sync_connection",
]
