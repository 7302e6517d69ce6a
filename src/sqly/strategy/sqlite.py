"""
SQLite-specific strategy implementation.

Connections run in autocommit mode (`isolation_level = None`), use `?`
placeholders, and parse `date`/`datetime` declared columns. A query Context
is observed during dispatch through SQLite's progress handler, which aborts
the running statement once the context is done.
"""
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqly.strategy.base import DatabaseStrategy, register_strategy
from sqly.types import AdapterRegistry

if TYPE_CHECKING:
    from sqly.context import Context
    from sqly.options import DatabaseOptions

logger = logging.getLogger(__name__)

# SQLite virtual machine instructions between progress handler calls
PROGRESS_HANDLER_STEPS = 1000


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        return {
            'connect_args': {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
        }

    @classmethod
    def get_required_options(cls) -> list[str]:
        return ['database']

    def configure_connection(self, raw_conn: Any) -> None:
        """Configure connection settings for SQLite.
        """
        raw_conn.execute('PRAGMA foreign_keys = ON')
        raw_conn.isolation_level = None
        AdapterRegistry().sqlite(raw_conn)

    def get_placeholder_style(self) -> str:
        return '?'

    @contextmanager
    def observe_context(self, raw_conn: Any, ctx: 'Context | None') -> Iterator[None]:
        """Abort the statement being dispatched once `ctx` is done.

        SQLite raises `sqlite3.OperationalError('interrupted')` when the
        progress handler returns a true value.
        """
        if ctx is None or not ctx.is_cancellable():
            yield
            return

        raw_conn.set_progress_handler(lambda: 1 if ctx.done() else 0, PROGRESS_HANDLER_STEPS)
        try:
            yield
        finally:
            raw_conn.set_progress_handler(None, PROGRESS_HANDLER_STEPS)
