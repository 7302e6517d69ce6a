"""
Typed query operations.

A scan callback reads the current row and returns a value of the caller's
type, so no reflection is involved:

    @dataclass
    class Person:
        first_name: str
        last_name: str

    def scan(row: Scanner) -> Person:
        first_name, last_name = row.scan()
        return Person(first_name, last_name)

    people = query_many(cn, 'SELECT fname, lname FROM people', scan)

`query` may be SQL text or a `Statement` from `cn.prepare()`, and every
operation accepts an optional `ctx` observed when the query is issued.
The library never validates what the callback reads; a callback that
unpacks the wrong number of columns fails with the error Python raises.
"""
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from sqly.cursor import Row, Rows, Scanner
from sqly.statement import Statement

if TYPE_CHECKING:
    from sqly.connection import ConnectionWrapper
    from sqly.context import Context

__all__ = [
    'ScanCallback',
    'query_many',
    'query_one',
    'query',
    'query_context',
    'query_statement',
    'query_statement_context',
    'query_row',
    'query_row_context',
    'query_row_statement',
    'query_row_statement_context',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')

ScanCallback = Callable[[Scanner], T]


def open_rows(cn: 'ConnectionWrapper', query: str | Statement, args: tuple,
              ctx: 'Context | None') -> Rows:
    """Issue SQL text on `cn`, or run a prepared statement on its own connection."""
    if isinstance(query, Statement):
        return query.query(*args, ctx=ctx)
    return cn.query(query, *args, ctx=ctx)


def query_many(cn: 'ConnectionWrapper', query: str | Statement, scan: ScanCallback[T],
               *args: Any, ctx: 'Context | None' = None) -> list[T]:
    """Run a query and materialize every row with `scan`.

    Returns an empty list when no rows match. The first error raised by
    `scan` stops iteration and propagates, as do errors raised while
    fetching. The cursor is closed on every path.
    """
    rows = open_rows(cn, query, args, ctx)
    try:
        results = [scan(row) for row in rows]
    finally:
        rows.close()
    logger.debug(f'Query returned {len(results)} rows')
    return results


def query_one(cn: 'ConnectionWrapper', query: str | Statement, scan: ScanCallback[T],
              *args: Any, ctx: 'Context | None' = None) -> T:
    """Run a query and materialize its first row with `scan`.

    Raises
        NoRowsError: from `row.scan()` when the query matched no rows

    Only the first row is read when the query could match several.
    """
    row = Row(open_rows(cn, query, args, ctx))
    try:
        return scan(row)
    finally:
        row.close()


def query(cn: 'ConnectionWrapper', sql: str, scan: ScanCallback[T], *args: Any) -> list[T]:
    return query_many(cn, sql, scan, *args)


def query_context(cn: 'ConnectionWrapper', ctx: 'Context', sql: str,
                  scan: ScanCallback[T], *args: Any) -> list[T]:
    return query_many(cn, sql, scan, *args, ctx=ctx)


def query_statement(stmt: Statement, scan: ScanCallback[T], *args: Any) -> list[T]:
    return query_many(stmt.connwrapper, stmt, scan, *args)


def query_statement_context(stmt: Statement, ctx: 'Context', scan: ScanCallback[T],
                            *args: Any) -> list[T]:
    return query_many(stmt.connwrapper, stmt, scan, *args, ctx=ctx)


def query_row(cn: 'ConnectionWrapper', sql: str, scan: ScanCallback[T], *args: Any) -> T:
    return query_one(cn, sql, scan, *args)


def query_row_context(cn: 'ConnectionWrapper', ctx: 'Context', sql: str,
                      scan: ScanCallback[T], *args: Any) -> T:
    return query_one(cn, sql, scan, *args, ctx=ctx)


def query_row_statement(stmt: Statement, scan: ScanCallback[T], *args: Any) -> T:
    return query_one(stmt.connwrapper, stmt, scan, *args)


def query_row_statement_context(stmt: Statement, ctx: 'Context', scan: ScanCallback[T],
                                *args: Any) -> T:
    return query_one(stmt.connwrapper, stmt, scan, *args, ctx=ctx)
