import sqlite3

import numpy as np
import pytest
import sqly
from sqly import Scanner


def test_query_many_all_rows(sl_conn, scan):
    """Test every row is materialized in cursor order"""
    people = sqly.query_many(sl_conn, 'SELECT * FROM test ORDER BY id', scan)

    assert len(people) == 10
    assert [p.id for p in people] == list(range(1, 11))
    assert people[1].first_name == 'fname_1'


def test_query_many_with_args(sl_conn, scan):
    """Test rows after id 5 start at fname_5"""
    people = sqly.query_many(sl_conn, 'SELECT * FROM test WHERE id > ?', scan, 5)

    assert [p.id for p in people] == [6, 7, 8, 9, 10]
    assert people[0].first_name == 'fname_5'


def test_query_many_no_rows(sl_conn, scan):
    """Test zero matching rows is an empty list, not an error"""
    people = sqly.query_many(sl_conn, 'SELECT * FROM test WHERE id > ?', scan, 100)
    assert people == []


def test_query_many_percent_placeholder(sl_conn, scan):
    """Test %s placeholders are converted for SQLite"""
    people = sqly.query_many(sl_conn, 'SELECT * FROM test WHERE id <= %s', scan, 3)
    assert [p.email for p in people] == ['email_0', 'email_1', 'email_2']


def test_query_many_numpy_args(sl_conn, scan):
    """Test NumPy scalars bind like plain ints"""
    people = sqly.query_many(sl_conn, 'SELECT * FROM test WHERE id = ?', scan, np.int64(4))
    assert [p.first_name for p in people] == ['fname_3']


def test_query_many_inline_type(sl_conn):
    """Test a locally defined result type and callback"""
    class Overview:
        def __init__(self, first_name, last_name):
            self.first_name = first_name
            self.last_name = last_name

    def scan_overview(row: Scanner) -> Overview:
        return Overview(*row.scan())

    results = sqly.query_many(sl_conn, 'SELECT fname, lname FROM test ORDER BY id', scan_overview)

    assert len(results) == 10
    assert results[3].first_name == 'fname_3'
    assert results[3].last_name == 'lname_3'


def test_query_many_tuple_result(sl_conn):
    """Test the callback may return any type, here a plain value"""
    ids = sqly.query_many(sl_conn, 'SELECT id FROM test WHERE id < ?', lambda row: row.scan()[0], 4)
    assert ids == [1, 2, 3]


def test_query_many_closes_cursor_once(sl_conn, scan, cursor_spy):
    """Test the cursor is closed exactly once on success"""
    sqly.query_many(sl_conn, 'SELECT * FROM test', scan)
    assert [c.close_calls for c in cursor_spy] == [1]


def test_query_many_scan_error_stops(sl_conn, scan, cursor_spy):
    """Test a callback failing on row K propagates and closes the cursor once"""
    seen = []

    def failing_scan(row):
        person = scan(row)
        if person.id == 4:
            raise ValueError('bad row 4')
        seen.append(person.id)
        return person

    with pytest.raises(ValueError, match='bad row 4'):
        sqly.query_many(sl_conn, 'SELECT * FROM test ORDER BY id', failing_scan)

    assert seen == [1, 2, 3]
    assert [c.close_calls for c in cursor_spy] == [1]


def test_query_many_column_count_mismatch(sl_conn, scan, cursor_spy):
    """Test a callback reading the wrong number of columns fails with Python's error"""
    with pytest.raises(ValueError):
        sqly.query_many(sl_conn, 'SELECT fname, lname FROM test', scan)
    assert [c.close_calls for c in cursor_spy] == [1]


def test_query_many_fetch_error(sl_conn, scan, faulty_cursor):
    """Test a driver error raised while fetching propagates and closes the cursor"""
    with pytest.raises(sqlite3.OperationalError, match='disk I/O error'):
        sqly.query_many(sl_conn, 'SELECT * FROM test', scan)
    assert [c.close_calls for c in faulty_cursor] == [1]


def test_query_many_issuance_error(sl_conn, scan, cursor_spy):
    """Test malformed SQL raises the driver error and closes the cursor"""
    with pytest.raises(sqlite3.OperationalError):
        sqly.query_many(sl_conn, 'SELECT * FROM missing_table', scan)
    assert [c.close_calls for c in cursor_spy] == [1]


def test_query_many_idempotent(sl_conn, scan):
    """Test re-running a read-only query gives the same result"""
    sql = 'SELECT * FROM test WHERE id BETWEEN ? AND ? ORDER BY id'
    assert sqly.query_many(sl_conn, sql, scan, 2, 6) == sqly.query_many(sl_conn, sql, scan, 2, 6)


def test_query_many_aliases(sl_conn, scan):
    """Test the named entry points match query_many"""
    sql = 'SELECT * FROM test WHERE id > ?'
    expected = sqly.query_many(sl_conn, sql, scan, 7)

    assert sqly.query(sl_conn, sql, scan, 7) == expected
    assert sqly.query_context(sl_conn, sqly.Context.background(), sql, scan, 7) == expected
    assert sl_conn.query_many(sql, scan, 7) == expected


def test_query_many_counts_calls(sl_conn, scan):
    """Test the connection tracks issued queries"""
    before = sl_conn.calls
    sqly.query_many(sl_conn, 'SELECT * FROM test', scan)
    sqly.query_many(sl_conn, 'SELECT * FROM test', scan)
    assert sl_conn.calls == before + 2
    assert sl_conn.time >= 0
