"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class, the database handle every query operation takes
3. Engine creation and management through a thread-safe registry

The library keeps no global handle: the embedding application creates a
`ConnectionWrapper` once and passes it to each call. The wrapper offers:
- query(sql, *args) - issue a query and return a `Rows` cursor
- query_row(sql, *args) - issue a query and return a single-row `Row` cursor
- prepare(sql) - return a `Statement` bound to this connection
- execute(sql, *args) - execute a statement and return the affected row count
- query_many / query_one / execute_dynamic_query - the executor operations
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from typing import TYPE_CHECKING, Any, Self, TypeVar

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqly.cursor import Row, Rows, issue
from sqly.options import DatabaseOptions
from sqly.statement import Statement
from sqly.strategy import DatabaseStrategy, get_db_strategy, get_strategy
from sqly.utils import get_dialect_name, get_raw_connection

from libb import load_options

if TYPE_CHECKING:
    from sqly.context import Context
    from sqly.executor import ScanCallback

__all__ = [
    'ConnectionWrapper',
    'connect',
    'configure_connection',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')
_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions, use_pool: bool = False,
                           pool_size: int = 5, pool_recycle: int = 300,
                           pool_timeout: int = 30,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = f'{str(options)}_{use_pool}_{pool_size}_{pool_recycle}_{pool_timeout}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False}
        engine_kwargs.update(strategy.get_engine_kwargs(options))

        if not use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = pool_size
            engine_kwargs['pool_recycle'] = pool_recycle
            engine_kwargs['pool_timeout'] = pool_timeout
            engine_kwargs['max_overflow'] = 10
            engine_kwargs['pool_pre_ping'] = True
            engine_kwargs['pool_reset_on_return'] = 'rollback'

        engine_kwargs.update(kwargs)

        engine = sa.create_engine(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection object to track calls and execution time

    This class is the database handle passed to every query operation:
    1. Issues queries and hands back row cursors
    2. Prepares statements bound to this connection
    3. Tracks query execution counts and timing
    4. Supports context manager protocol for explicit resource management
    5. Delegates attribute access to the SQLAlchemy connection object
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: DatabaseOptions | None = None) -> None:
        """Initialize a connection wrapper
        """
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        self._dialect = get_dialect_name(sa_connection) if sa_connection else None
        self.calls = 0
        self.time = 0

    def __enter__(self) -> Self:
        """Support for context manager protocol
        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Return the connection to the pool when exiting the context manager
        """
        self.close()
        logger.debug('Closed connection via context manager')

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the SQLAlchemy connection or the raw connection.
        """
        if name in {'sa_connection', 'dbapi_connection'}:
            raise AttributeError(name)

        if hasattr(self.sa_connection, name):
            return getattr(self.sa_connection, name)

        return getattr(self.dbapi_connection, name)

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    @property
    def strategy(self) -> DatabaseStrategy:
        return get_db_strategy(self)

    @property
    def is_pooled(self) -> bool:
        """Check if this connection is using SQLAlchemy's connection pooling
        """
        return not isinstance(self.engine.pool, sa.pool.NullPool)

    def cursor(self) -> Any:
        """Get a raw DBAPI cursor for this connection

        If the connection is closed, it will be reconnected automatically.
        """
        if getattr(self.sa_connection, 'closed', False):
            self.sa_connection = self.engine.connect()
            self.dbapi_connection = self.sa_connection.connection
            configure_connection(self.sa_connection)

        return self.dbapi_connection.cursor()

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def commit(self) -> None:
        """Commit on the DBAPI connection; a no-op in autocommit mode.
        """
        self.dbapi_connection.commit()

    def close(self) -> None:
        """Close the SQLAlchemy connection
        """
        if self.sa_connection is None or self.sa_connection.closed:
            return
        self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')

    def query(self, sql: str, *args: Any, ctx: 'Context | None' = None) -> Rows:
        """Issue a query and return a cursor over its rows.

        The caller owns the returned cursor and must close it.
        """
        return Rows(issue(self, sql, args, ctx=ctx))

    def query_row(self, sql: str, *args: Any, ctx: 'Context | None' = None) -> Row:
        """Issue a query and return a cursor over its first row.
        """
        return Row(self.query(sql, *args, ctx=ctx))

    def prepare(self, sql: str) -> Statement:
        """Prepare a statement bound to this connection.

        The caller owns the statement and closes it when done.
        """
        return Statement(self, sql)

    def execute(self, sql: str, *args: Any) -> int:
        """Execute a SQL statement with the given parameters and return affected row count.
        """
        cursor = issue(self, sql, args)
        try:
            rowcount = cursor.rowcount
        finally:
            cursor.close()
        self.commit()
        logger.debug(f'Executed statement with {len(args)} parameters, {rowcount} rows affected')
        return rowcount

    def query_many(self, query: str | Statement, scan: 'ScanCallback[T]', *args: Any,
                   ctx: 'Context | None' = None) -> list[T]:
        """Run `query` and materialize every row with `scan`.
        """
        from sqly.executor import query_many
        return query_many(self, query, scan, *args, ctx=ctx)

    def query_one(self, query: str | Statement, scan: 'ScanCallback[T]', *args: Any,
                  ctx: 'Context | None' = None) -> T:
        """Run `query` and materialize its first row with `scan`.
        """
        from sqly.executor import query_one
        return query_one(self, query, scan, *args, ctx=ctx)

    def execute_dynamic_query(self, query: str | Statement, *args: Any,
                              ctx: 'Context | None' = None,
                              loader: Callable[..., Any] | None = None) -> Any:
        """Run `query` and return one column-name keyed mapping per row.
        """
        from sqly.dynamic import execute_dynamic_query
        return execute_dynamic_query(self, query, *args, ctx=ctx, loader=loader)


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Configure a SQLAlchemy connection with database-specific settings.
    """
    strategy = get_db_strategy(sa_connection)
    strategy.configure_connection(get_raw_connection(sa_connection.connection))


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Connection pooling options:
        use_pool: Whether to use connection pooling (default: False)
        pool_max_connections: Maximum connections in pool (default: 5)
        pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
        pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)

    Returns
        ConnectionWrapper object for connecting to the database
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options, use_pool=options.use_pool,
                                    pool_size=options.pool_max_connections,
                                    pool_recycle=options.pool_max_idle_time,
                                    pool_timeout=options.pool_wait_timeout)

    sa_connection = engine.connect()
    configure_connection(sa_connection)

    return ConnectionWrapper(sa_connection, options)
