"""
Row cursors over DB-API 2.0 (PEP-249) cursors.

`issue()` dispatches a query on a connection and returns the raw cursor.
`Rows` walks the result forward one row at a time and `Row` wraps it for
single-row access. Both satisfy the `Scanner` protocol handed to scan
callbacks.
"""
import logging
import time
from collections import deque
from collections.abc import Iterator, Sequence
from functools import wraps
from typing import TYPE_CHECKING, Any, Protocol, Self

from sqly.exceptions import NoRowsError, ScanError
from sqly.types import TypeConverter
from sqly.utils import get_raw_connection

if TYPE_CHECKING:
    from sqly.connection import ConnectionWrapper
    from sqly.context import Context

__all__ = ['Scanner', 'Rows', 'Row', 'issue']

logger = logging.getLogger(__name__)


class Scanner(Protocol):
    """Row access handed to scan callbacks.

    `scan()` returns the current row's values in column order.
    """

    def scan(self) -> tuple[Any, ...]:
        ...


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(cn: 'ConnectionWrapper', sql: str, args: Sequence, *a: Any, **kw: Any):
        start = time.time()
        logger.debug(f'SQL:\n{sql}\nargs: {args}')
        try:
            return func(cn, sql, args, *a, **kw)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{sql}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            cn.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


def issue(cn: 'ConnectionWrapper', sql: str, args: Sequence,
          ctx: 'Context | None' = None, prepare: bool = False,
          standardized: bool = False) -> Any:
    """Dispatch `sql` with `args` and return the raw DBAPI cursor.

    The context is checked before dispatch and observed by the dialect
    strategy while the statement executes. If dispatch fails the cursor is
    closed before the error propagates; a failure caused by the context
    being done surfaces as the context error.

    A context that is already done raises here, before anything is logged
    or counted as a query.
    """
    if ctx is not None:
        ctx.check()
    return _dispatch(cn, sql, args, ctx=ctx, prepare=prepare, standardized=standardized)


@dumpsql
def _dispatch(cn: 'ConnectionWrapper', sql: str, args: Sequence,
              ctx: 'Context | None', prepare: bool, standardized: bool) -> Any:
    strategy = cn.strategy
    if not standardized:
        sql = strategy.standardize_sql(sql)
    params = TypeConverter.convert_params(tuple(args))

    cursor = cn.cursor()
    try:
        with strategy.observe_context(get_raw_connection(cn), ctx):
            strategy.execute(cursor, sql, params, prepare=prepare)
    except Exception as exc:
        cursor.close()
        err = ctx.err() if ctx is not None else None
        if err is not None:
            raise err from exc
        raise
    return cursor


class Rows:
    """Forward-only cursor over the rows of one query.

    Owned by the call that opened it. `close()` releases the underlying
    DBAPI cursor and may be called any number of times; the cursor itself
    is closed once.
    """

    def __init__(self, cursor: Any, arraysize: int = 500) -> None:
        self.dbapi_cursor = cursor
        self.arraysize = arraysize
        self.closed = False
        self._buffer: deque = deque()
        self._exhausted = cursor.description is None
        self._current: Sequence | None = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Self]:
        """Advance through the rows, yielding self positioned on each one."""
        while self.next():
            yield self

    def columns(self) -> list[str]:
        """Column names of the result set, in order.

        Statements that produce no result set have no columns.
        """
        if self.closed:
            raise ScanError('rows are closed')
        description = self.dbapi_cursor.description
        if description is None:
            return []
        return [desc[0] for desc in description]

    def next(self) -> bool:
        """Advance to the next row, returning False once exhausted.

        Errors raised by the driver while fetching propagate.
        """
        if self.closed:
            return False
        if not self._buffer and not self._exhausted:
            chunk = self.dbapi_cursor.fetchmany(self.arraysize)
            if chunk:
                self._buffer.extend(chunk)
            else:
                self._exhausted = True
        if not self._buffer:
            self._current = None
            return False
        self._current = self._buffer.popleft()
        return True

    def scan(self) -> tuple[Any, ...]:
        """Return the current row's values."""
        if self._current is None:
            raise ScanError('scan called without a current row')
        return tuple(self._current)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._buffer.clear()
        self._current = None
        self.dbapi_cursor.close()


class Row:
    """Single-row cursor: the first row of a query, if any.

    `scan()` raises `NoRowsError` when the query produced no rows. The
    underlying cursor is closed after the first scan; later scans return
    the same values. Only one row is ever fetched.
    """

    def __init__(self, rows: Rows) -> None:
        self._rows = rows
        self._rows.arraysize = 1
        self._values: tuple[Any, ...] | None = None

    def scan(self) -> tuple[Any, ...]:
        if self._values is None:
            try:
                if not self._rows.next():
                    raise NoRowsError()
                self._values = self._rows.scan()
            finally:
                self._rows.close()
        return self._values

    def close(self) -> None:
        self._rows.close()
