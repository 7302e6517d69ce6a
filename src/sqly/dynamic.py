"""
Dynamic queries for schemas unknown until the query runs.

    rows = execute_dynamic_query(cn, "SELECT fname || ' ' || lname as full_name FROM people")
    rows[0]['full_name']

Each row becomes a dict keyed by the column names of the cursor
description. Values keep the type the driver produced; `_unwrap` is the
one place a value is looked at dynamically.
"""
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqly.executor import open_rows
from sqly.options import iterdict_data_loader
from sqly.statement import Statement

if TYPE_CHECKING:
    from sqly.connection import ConnectionWrapper
    from sqly.context import Context

__all__ = ['execute_dynamic_query']

logger = logging.getLogger(__name__)


def _unwrap(value: Any) -> Any:
    """Strip the buffer indirection some drivers hand back for binary columns.
    """
    if isinstance(value, memoryview):
        return value.tobytes()
    return value


def execute_dynamic_query(cn: 'ConnectionWrapper', query: str | Statement, *args: Any,
                          ctx: 'Context | None' = None,
                          loader: Callable[..., Any] | None = None) -> Any:
    """Execute a query and return one column-name keyed dict per row.

    Duplicate column names keep the last value. The rows are passed through
    `loader`, or the connection's configured `data_loader`, which defaults
    to a plain list of dicts.

    Args:
        cn: Database connection
        query: SQL text or a prepared Statement
        *args: Query parameters
        ctx: Optional Context observed when the query is issued
        loader: Optional data loader overriding the connection's

    Returns
        Whatever the data loader builds; a list of dicts by default
    """
    rows = open_rows(cn, query, args, ctx)
    try:
        columns = rows.columns()
        data = []
        for row in rows:
            values = row.scan()
            data.append({col: _unwrap(values[i]) for i, col in enumerate(columns)})
    finally:
        rows.close()

    logger.debug(f'Dynamic query returned {len(data)} rows with columns {columns}')

    if loader is None:
        options = getattr(cn, 'options', None)
        loader = options.data_loader if options is not None else iterdict_data_loader
    return loader(data, columns)
