"""
Tests for parameter conversion and SQLite date converters.
"""
import datetime
import math

import numpy as np
import pandas as pd
import pytest
from sqly.types import TypeConverter, adapt_date, adapt_datetime, convert_date
from sqly.types import convert_datetime


class TestTypeConverter:
    """Test values are made safe to bind"""

    @pytest.mark.parametrize(('value', 'expected'), [
        (np.int64(42), 42),
        (np.int32(-7), -7),
        (np.uint8(200), 200),
        (np.float64(1.5), 1.5),
        (np.bool_(True), True),
    ])
    def test_numpy_scalars(self, value, expected):
        result = TypeConverter.convert_value(value)
        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize('value', [
        float('nan'),
        float('inf'),
        np.float64('nan'),
        pd.NaT,
        pd.NA,
        np.datetime64('NaT'),
        None,
    ])
    def test_missing_values(self, value):
        assert TypeConverter.convert_value(value) is None

    def test_timestamps(self):
        ts = pd.Timestamp('2024-01-02 03:04:05')
        assert TypeConverter.convert_value(ts) == datetime.datetime(2024, 1, 2, 3, 4, 5)

        dt64 = np.datetime64('2024-01-02T03:04:05')
        assert TypeConverter.convert_value(dt64) == datetime.datetime(2024, 1, 2, 3, 4, 5)

    def test_passthrough(self):
        """Test plain Python values are returned as is"""
        for value in ('text', 7, 2.5, b'\x00', datetime.date(2024, 1, 1)):
            assert TypeConverter.convert_value(value) is value

    def test_convert_params(self):
        assert TypeConverter.convert_params(None) is None
        assert TypeConverter.convert_params((np.int64(1), 'a', math.nan)) == (1, 'a', None)
        assert TypeConverter.convert_params([np.float64(2.0)]) == [2.0]
        assert TypeConverter.convert_params({'x': np.int16(3)}) == {'x': 3}
        assert TypeConverter.convert_params(()) == ()


class TestSqliteConverters:

    def test_date(self):
        assert convert_date(b'2024-02-29') == datetime.date(2024, 2, 29)
        assert adapt_date(datetime.date(2024, 2, 29)) == '2024-02-29'

    def test_datetime(self):
        value = datetime.datetime(2024, 2, 29, 13, 45, 10)
        assert adapt_datetime(value) == '2024-02-29 13:45:10'
        assert convert_datetime(b'2024-02-29 13:45:10') == value
        assert convert_datetime(b'2024-02-29T13:45:10') == value


if __name__ == '__main__':
    __import__('pytest').main([__file__])
