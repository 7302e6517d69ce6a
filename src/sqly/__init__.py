"""
Typed and dynamic SQL query helpers over DB-API drivers.

All query operations take the database handle returned by `connect()`:
- Module functions: sqly.query_many(cn, sql, scan, *args)
- ConnectionWrapper methods: cn.query_many(sql, scan, *args)
- Statement methods: cn.prepare(sql).query_many(scan, *args)
"""
__version__ = '0.1.0'

from typing import Any

from sqly.connection import ConnectionWrapper, connect, dispose_all_engines
from sqly.context import Context
from sqly.cursor import Row, Rows, Scanner
from sqly.dynamic import execute_dynamic_query
from sqly.exceptions import CancelledError, ContextError, DbConnectionError
from sqly.exceptions import DeadlineExceededError, IntegrityError, NoRowsError
from sqly.exceptions import OperationalError, ProgrammingError, ScanError
from sqly.exceptions import SqlyError, StatementClosedError
from sqly.executor import ScanCallback, query, query_context, query_many, query_one
from sqly.executor import query_row, query_row_context, query_row_statement
from sqly.executor import query_row_statement_context, query_statement
from sqly.executor import query_statement_context
from sqly.options import DatabaseOptions, iterdict_data_loader
from sqly.options import pandas_data_loader
from sqly.statement import Statement


def execute(cn: ConnectionWrapper, sql: str, *args: Any) -> int:
    """Execute a SQL statement and return affected row count.
    """
    return cn.execute(sql, *args)


def prepare(cn: ConnectionWrapper, sql: str) -> Statement:
    """Prepare a statement bound to `cn`; the caller closes it.
    """
    return cn.prepare(sql)


__all__ = [
    'connect',
    'dispose_all_engines',
    'ConnectionWrapper',
    'DatabaseOptions',
    'Context',
    'Statement',
    'Scanner',
    'ScanCallback',
    'Rows',
    'Row',
    'execute',
    'prepare',
    'query_many',
    'query_one',
    'execute_dynamic_query',
    'query',
    'query_context',
    'query_statement',
    'query_statement_context',
    'query_row',
    'query_row_context',
    'query_row_statement',
    'query_row_statement_context',
    'iterdict_data_loader',
    'pandas_data_loader',
    'SqlyError',
    'NoRowsError',
    'ScanError',
    'StatementClosedError',
    'ContextError',
    'CancelledError',
    'DeadlineExceededError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
]
