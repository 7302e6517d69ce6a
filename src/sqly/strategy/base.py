"""
Base strategy interface for dialect-specific behaviour.

Each concrete strategy encapsulates what differs between drivers: how the
engine URL is built, which options are required, how a connection is
configured, the native placeholder style, how a statement is dispatched,
and how a query Context is observed while the statement executes.
"""
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqly.sql import standardize_placeholders

if TYPE_CHECKING:
    from sqly.context import Context
    from sqly.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for database-specific operations.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for these options.

        Args:
            options: DatabaseOptions describing the connection
        """

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return extra SQLAlchemy create_engine kwargs for this dialect."""
        return {}

    @abstractmethod
    def configure_connection(self, raw_conn: Any) -> None:
        """Configure a freshly opened DBAPI connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return option fields that must be set for this dialect."""

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def get_placeholder_style(self) -> str:
        """Return the placeholder marker for this database.

        Returns
            str: '%s' for PostgreSQL-style, '?' for SQLite-style
        """
        return '%s'

    def standardize_sql(self, sql: str) -> str:
        """Convert placeholders to this dialect's style."""
        return standardize_placeholders(sql, dialect=self.dialect_name)

    def execute(self, cursor: Any, sql: str, params: tuple,
                prepare: bool = False) -> None:
        """Dispatch a statement on a DBAPI cursor.

        Args:
            cursor: Raw DBAPI cursor
            sql: SQL already in this dialect's placeholder style
            params: Converted bind parameters
            prepare: Whether the caller asked for a prepared statement
        """
        cursor.execute(sql, params)

    @contextmanager
    def observe_context(self, raw_conn: Any, ctx: 'Context | None') -> Iterator[None]:
        """Observe `ctx` while a statement is being dispatched.

        The default only relies on the pre-dispatch check done by the caller.
        """
        yield
