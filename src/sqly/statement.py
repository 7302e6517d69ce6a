"""
Prepared statements bound to a connection.

A `Statement` is created with `ConnectionWrapper.prepare(sql)` and owned by
the caller, who decides when to close it:

    with cn.prepare('SELECT * FROM test WHERE id = ?') as stmt:
        for i in range(1, 6):
            person = stmt.query_one(scan, i)
"""
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Self, TypeVar

from sqly.cursor import Row, Rows, issue
from sqly.exceptions import StatementClosedError

if TYPE_CHECKING:
    from sqly.connection import ConnectionWrapper
    from sqly.context import Context
    from sqly.executor import ScanCallback

__all__ = ['Statement']

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Statement:
    """SQL text normalized once for a connection's dialect.

    On PostgreSQL each dispatch asks psycopg to prepare the statement on
    the server; SQLite reuses its own statement cache keyed on the text.
    """

    def __init__(self, connwrapper: 'ConnectionWrapper', sql: str) -> None:
        self.connwrapper = connwrapper
        self.sql = connwrapper.strategy.standardize_sql(sql)
        self.closed = False
        logger.debug(f'Prepared statement:\n{self.sql}')

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f'<Statement {state} {self.sql!r}>'

    def close(self) -> None:
        self.closed = True

    def _check_open(self) -> None:
        if self.closed:
            raise StatementClosedError()

    def query(self, *args: Any, ctx: 'Context | None' = None) -> Rows:
        """Run the statement and return a cursor over its rows.
        """
        self._check_open()
        cursor = issue(self.connwrapper, self.sql, args, ctx=ctx, prepare=True,
                       standardized=True)
        return Rows(cursor)

    def query_row(self, *args: Any, ctx: 'Context | None' = None) -> Row:
        """Run the statement and return a cursor over its first row.
        """
        return Row(self.query(*args, ctx=ctx))

    def execute(self, *args: Any) -> int:
        """Run the statement and return the affected row count.
        """
        self._check_open()
        cursor = issue(self.connwrapper, self.sql, args, prepare=True, standardized=True)
        try:
            rowcount = cursor.rowcount
        finally:
            cursor.close()
        self.connwrapper.commit()
        return rowcount

    def query_many(self, scan: 'ScanCallback[T]', *args: Any,
                   ctx: 'Context | None' = None) -> list[T]:
        from sqly.executor import query_many
        return query_many(self.connwrapper, self, scan, *args, ctx=ctx)

    def query_one(self, scan: 'ScanCallback[T]', *args: Any,
                  ctx: 'Context | None' = None) -> T:
        from sqly.executor import query_one
        return query_one(self.connwrapper, self, scan, *args, ctx=ctx)

    def execute_dynamic_query(self, *args: Any, ctx: 'Context | None' = None,
                              loader: Callable[..., Any] | None = None) -> Any:
        from sqly.dynamic import execute_dynamic_query
        return execute_dynamic_query(self.connwrapper, self, *args, ctx=ctx, loader=loader)
