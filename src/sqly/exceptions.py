"""
Exception classes raised by sqly, plus driver exception groupings.

Errors coming from the driver are never wrapped: the groupings below exist
so callers can catch the same failure class across sqlite3 and psycopg.
"""
import sqlite3

import psycopg


class SqlyError(Exception):
    """Base class for all sqly errors.
    """


class NoRowsError(SqlyError, LookupError):
    """A single-row query matched no rows.
    """

    def __init__(self, message: str = 'no rows in result set') -> None:
        super().__init__(message)


class ScanError(SqlyError):
    """A row cursor was scanned without a current row.
    """


class StatementClosedError(SqlyError):
    """A prepared statement was used after it was closed.
    """

    def __init__(self, message: str = 'statement is closed') -> None:
        super().__init__(message)


class ContextError(SqlyError):
    """The query context was done before or while the query was issued.
    """


class CancelledError(ContextError):
    """The query context was cancelled.
    """

    def __init__(self, message: str = 'context canceled') -> None:
        super().__init__(message)


class DeadlineExceededError(ContextError, TimeoutError):
    """The query context deadline passed.
    """

    def __init__(self, message: str = 'context deadline exceeded') -> None:
        super().__init__(message)


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    psycopg.DatabaseError,
    sqlite3.ProgrammingError,
    sqlite3.DatabaseError,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )
