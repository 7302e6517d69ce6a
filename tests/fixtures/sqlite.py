import pytest
import sqly


def stage_test_data(cn):
    """Create table `test` with 10 rows, row i holding fname_i, lname_i, email_i."""
    cn.execute("""
    CREATE TABLE test (
        id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
        fname TEXT,
        lname TEXT,
        email TEXT
    )
    """)

    # same insert 10 times, so prepare it once
    with cn.prepare('INSERT INTO test (fname, lname, email) VALUES (?, ?, ?)') as stmt:
        for i in range(10):
            stmt.execute(f'fname_{i}', f'lname_{i}', f'email_{i}')


@pytest.fixture
def sl_conn():
    """In-memory SQLite connection with the `test` table staged"""
    conn = sqly.connect({
        'drivername': 'sqlite',
        'database': ':memory:'
    })
    stage_test_data(conn)

    yield conn
    conn.close()
