"""
End-to-end scenario: two groups by twelve months with one missing
response, fitted with a month factor and summarized at every level.
"""

import numpy as np
import pandas as pd
import pytest

from pytidyfit import (
    EmptyInputError,
    coefficient_level,
    fit_grouped,
    model_level,
    observation_level,
)


class TestMonthlyScenario:

    @pytest.fixture
    def fits(self, monthly_sales):
        return fit_grouped(monthly_sales, 'group', 'sales ~ factor(month)')

    def test_both_groups_fit(self, fits):
        assert list(fits) == [('A',), ('B',)]
        assert fits.n_failed == 0
        assert fits.warnings == ()

    def test_model_level(self, fits):
        table = model_level(fits)
        assert len(table) == 2
        assert table['nobs'].tolist() == [11, 12]
        assert table['n_excluded'].tolist() == [1, 0]

    def test_group_a_is_saturated(self, fits):
        # Eleven observed months estimate eleven parameters exactly
        model = fits['A'].unwrap()
        assert model.df_residual == 0
        assert any("saturated" in w for w in model.warnings)

    def test_coefficient_level(self, fits):
        table = coefficient_level(fits)
        counts = table.groupby('group').size()
        assert counts['A'] == 11
        assert counts['B'] == 12
        months = table.loc[table['variable'] == 'month']
        assert sorted(months.loc[months['group'] == 'B', 'level']) == list(range(2, 13))
        assert 6 not in months.loc[months['group'] == 'A', 'level'].tolist()
        assert (table['term'] == '(Intercept)').sum() == 2

    def test_observation_level(self, fits, monthly_sales):
        table = observation_level(fits)
        assert len(table) == 24
        missing = table[table['.fitted'].isna()]
        assert len(missing) == 1
        assert missing['group'].tolist() == ['A']
        assert missing['month'].tolist() == [6]
        assert missing['.row'].tolist() == [10]

    def test_fitted_values_are_group_month_means(self, fits, monthly_sales):
        # With one row per (group, month) every observed row is fitted exactly
        table = observation_level(fits).dropna(subset=['.fitted'])
        np.testing.assert_allclose(table['.fitted'], table['sales'], atol=1e-8)


class TestEmptyScenario:

    def test_zero_rows(self):
        with pytest.raises(EmptyInputError):
            fit_grouped(
                pd.DataFrame({'group': [], 'month': [], 'sales': []}),
                'group', 'sales ~ factor(month)',
            )
