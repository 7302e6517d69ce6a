"""
PostgreSQL-specific strategy implementation.

Connections go through psycopg 3 in autocommit mode and use `%s`
placeholders. Prepared statements are dispatched with `prepare=True` so
the server keeps the plan. When a query Context carries a deadline, a
timer cancels the statement on the server if dispatch outlives it.
"""
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqly.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from sqly.context import Context
    from sqly.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port,
            database=options.database,
            query=query
        )

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port', 'timeout']

    def configure_connection(self, raw_conn: Any) -> None:
        """Configure connection settings for PostgreSQL.
        """
        raw_conn.autocommit = True

    def execute(self, cursor: Any, sql: str, params: tuple,
                prepare: bool = False) -> None:
        cursor.execute(sql, params or None, prepare=True if prepare else None)

    @contextmanager
    def observe_context(self, raw_conn: Any, ctx: 'Context | None') -> Iterator[None]:
        """Cancel the running statement if the context deadline passes.

        Plain cancellation (without a deadline) is only checked before
        dispatch.
        """
        remaining = ctx.remaining() if ctx is not None else None
        if remaining is None:
            yield
            return

        cancel = getattr(raw_conn, 'cancel_safe', None) or raw_conn.cancel
        timer = threading.Timer(remaining, cancel)
        timer.daemon = True
        timer.start()
        try:
            yield
        finally:
            timer.cancel()
