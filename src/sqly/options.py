from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
from sqly.strategy import get_available_dialects, get_strategy_class
from sqly.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = [
    'DatabaseOptions',
    'iterdict_data_loader',
    'pandas_data_loader',
]


def iterdict_data_loader(data: list[dict[str, Any]], columns: list[str],
                         **kwargs) -> list[dict[str, Any]]:
    """Minimal data loader: the dynamic rows as a list of dicts.
    """
    if not data:
        return []
    return list(data)


def pandas_data_loader(data: list[dict[str, Any]], columns: list[str],
                       **kwargs) -> pd.DataFrame:
    """pandas DataFrame loader.

    Always returns a DataFrame, never None, with the query's column order
    preserved even for empty results.
    """
    if not data:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame.from_records(data, columns=columns)


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `sqlite`

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: False)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    data_loader: Callable[..., Any] | None = None
    # Connection pooling parameters
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader
