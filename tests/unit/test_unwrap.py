"""Unit tests for the dynamic materializer over a fake cursor."""
import pytest
from sqly.cursor import Rows
from sqly.dynamic import execute_dynamic_query
from sqly.options import pandas_data_loader


class FakeConnection:
    """Handle whose queries read from a prepared fake cursor."""

    def __init__(self, cursor):
        self.cursor = cursor
        self.options = None
        self.issued = []

    def query(self, sql, *args, ctx=None):
        self.issued.append((sql, args))
        return Rows(self.cursor)


def test_memoryview_unwrapped(fake_cursor):
    """Test buffer values come back as bytes and other values are untouched"""
    cursor = fake_cursor(('blob', 'missing', 'count'), [(memoryview(b'\x00\x01'), None, 7)])
    cn = FakeConnection(cursor)

    rows = execute_dynamic_query(cn, 'SELECT blob, missing, count FROM t WHERE id = ?', 1)

    assert rows == [{'blob': b'\x00\x01', 'missing': None, 'count': 7}]
    assert type(rows[0]['blob']) is bytes
    assert type(rows[0]['count']) is int
    assert cn.issued == [('SELECT blob, missing, count FROM t WHERE id = ?', (1,))]
    assert cursor.close_calls == 1


@pytest.mark.parametrize('value', [b'raw', 'text', 1.5, None])
def test_values_kept(fake_cursor, value):
    cn = FakeConnection(fake_cursor(('v',), [(value,)]))
    assert execute_dynamic_query(cn, 'SELECT v') == [{'v': value}]


def test_loader_argument(fake_cursor):
    cn = FakeConnection(fake_cursor(('a', 'b'), [(memoryview(b'x'), 2)]))
    df = execute_dynamic_query(cn, 'SELECT a, b', loader=pandas_data_loader)
    assert list(df.columns) == ['a', 'b']
    assert df.iloc[0]['a'] == b'x'


def test_fetch_error_closes_cursor(fake_cursor):
    cursor = fake_cursor(('a',), [])

    def fetchmany(size=1):
        raise RuntimeError('connection lost')

    cursor.fetchmany = fetchmany
    with pytest.raises(RuntimeError, match='connection lost'):
        execute_dynamic_query(FakeConnection(cursor), 'SELECT a')
    assert cursor.close_calls == 1


if __name__ == '__main__':
    __import__('pytest').main([__file__])
