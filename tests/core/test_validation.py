"""
Tests for input validation utilities.
"""

import numpy as np
import pandas as pd
import pytest

from pytidyfit.core.exceptions import (
    EmptyInputError,
    MissingColumnError,
    ValidationError,
)
from pytidyfit.core.table import Table
from pytidyfit.core.validation import (
    check_columns,
    check_group_columns,
    check_na_action,
    check_not_empty,
    check_numeric_column,
)


class TestCheckNotEmpty:

    def test_empty_raises(self):
        tbl = Table.from_dataframe(pd.DataFrame({'g': [], 'y': []}))
        with pytest.raises(EmptyInputError, match="0 rows"):
            check_not_empty(tbl)

    def test_non_empty_passes(self):
        check_not_empty(Table.from_columns(y=[1.0]))


class TestCheckColumns:

    def test_missing_names_role(self):
        tbl = Table.from_columns(a=[1], b=[2])
        with pytest.raises(MissingColumnError, match="group column 'city'") as excinfo:
            check_columns(tbl, ['a', 'city'], 'group')
        assert excinfo.value.column == 'city'
        assert excinfo.value.available == ('a', 'b')

    def test_all_present(self):
        check_columns(Table.from_columns(a=[1], b=[2]), ['b', 'a'], 'formula')


class TestCheckGroupColumns:

    def test_string_becomes_tuple(self):
        assert check_group_columns('city') == ('city',)

    def test_list_becomes_tuple(self):
        assert check_group_columns(['city', 'year']) == ('city', 'year')

    def test_empty_raises(self):
        with pytest.raises(ValidationError, match="at least one"):
            check_group_columns([])

    def test_duplicates_raise(self):
        with pytest.raises(ValidationError, match="duplicate"):
            check_group_columns(['city', 'city'])

    def test_non_string_raises(self):
        with pytest.raises(ValidationError, match="strings"):
            check_group_columns([1])


class TestCheckNaAction:

    @pytest.mark.parametrize("value", ['exclude', 'drop'])
    def test_valid(self, value):
        check_na_action(value)

    def test_invalid(self):
        with pytest.raises(ValidationError, match="na_action"):
            check_na_action('omit')


class TestCheckNumericColumn:

    def test_float_with_missing(self):
        out = check_numeric_column(pd.Series([1.0, None, 3.0]), 'x')
        assert out.dtype == np.float64
        assert np.isnan(out[1])

    def test_nullable_int(self):
        out = check_numeric_column(pd.Series([1, None, 3], dtype='Int64'), 'x')
        np.testing.assert_array_equal(out[[0, 2]], [1.0, 3.0])
        assert np.isnan(out[1])

    def test_bool(self):
        out = check_numeric_column(pd.Series([True, False]), 'x')
        np.testing.assert_array_equal(out, [1.0, 0.0])

    def test_datetime_to_days(self):
        series = pd.Series(pd.to_datetime(['1970-01-02', None, '1970-01-11']))
        out = check_numeric_column(series, 'date')
        assert out[0] == pytest.approx(1.0)
        assert np.isnan(out[1])
        assert out[2] == pytest.approx(10.0)

    def test_numeric_strings(self):
        out = check_numeric_column(pd.Series(['1.5', '2.5'], dtype=object), 'x')
        np.testing.assert_array_equal(out, [1.5, 2.5])

    def test_text_raises_with_hint(self):
        with pytest.raises(ValidationError, match="factor"):
            check_numeric_column(pd.Series(['a', 'b']), 'city')

