"""
Tests for regression lm().

Tests the complete pipeline: formula evaluation, design construction,
backend selection, and solution properties.
"""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from pytidyfit.core.exceptions import (
    DegenerateModelError,
    EmptyInputError,
    FormulaError,
    MissingColumnError,
    ValidationError,
)
from pytidyfit.regression import LinearSolution, lm


def _design(df):
    return np.column_stack([np.ones(len(df)), df['x1'], df['x2']])


class TestFitBasic:
    """Basic lm() functionality tests."""

    def test_returns_solution(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        assert isinstance(result, LinearSolution)
        assert result.coefficient_names == ('(Intercept)', 'x1', 'x2')

    def test_matches_lstsq(self, simple_regression_data):
        df = simple_regression_data
        result = lm('y ~ x1 + x2', df)
        expected, *_ = np.linalg.lstsq(_design(df), df['y'].to_numpy(), rcond=None)
        np.testing.assert_allclose(result.coefficients, expected, rtol=1e-10)

    def test_recovers_true_coefficients(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0, -0.5], atol=0.05)

    def test_coef_dict(self, simple_regression_data):
        coef = lm('y ~ x1 + x2', simple_regression_data).coef
        assert set(coef) == {'(Intercept)', 'x1', 'x2'}

    def test_fitted_plus_residuals_equals_y(self, simple_regression_data):
        df = simple_regression_data
        result = lm('y ~ x1 + x2', df)
        np.testing.assert_allclose(
            result.fitted_values + result.residuals, df['y'].to_numpy(), atol=1e-12
        )

    def test_rss_matches_residuals(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        expected_rss = float(result.residuals @ result.residuals)
        assert abs(result.rss - expected_rss) < 1e-10

    def test_r_squared_formula(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        expected = 1.0 - result.rss / result.tss
        assert abs(result.r_squared - expected) < 1e-15
        assert 0.99 < result.r_squared <= 1.0

    def test_adjusted_r_squared(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        n = result.nobs
        expected = 1.0 - (1.0 - result.r_squared) * (n - 1) / (n - 3)
        assert result.adjusted_r_squared == pytest.approx(expected)

    def test_standard_errors_match_closed_form(self, simple_regression_data):
        df = simple_regression_data
        result = lm('y ~ x1 + x2', df)
        X = _design(df)
        sigma_sq = result.rss / (len(df) - 3)
        expected = np.sqrt(sigma_sq * np.diag(np.linalg.inv(X.T @ X)))
        np.testing.assert_allclose(result.standard_errors, expected, rtol=1e-8)

    def test_p_values_valid(self, simple_regression_data):
        pv = lm('y ~ x1 + x2', simple_regression_data).p_values
        assert np.all(pv >= 0.0)
        assert np.all(pv <= 1.0)

    def test_f_statistic(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        expected = ((result.tss - result.rss) / 2) / (result.rss / result.df_residual)
        assert result.f_statistic == pytest.approx(expected)
        assert result.df_model == 2
        assert result.f_p_value == pytest.approx(
            stats.f.sf(expected, 2, result.df_residual)
        )

    def test_log_likelihood_and_information_criteria(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        n = result.nobs
        sigma_ml = np.sqrt(result.rss / n)
        expected = np.sum(stats.norm.logpdf(result.residuals, scale=sigma_ml))
        assert result.log_likelihood == pytest.approx(expected)
        assert result.aic == pytest.approx(-2 * expected + 2 * 4)
        assert result.bic == pytest.approx(-2 * expected + np.log(n) * 4)

    def test_conf_int(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        ci = result.conf_int(0.95)
        assert ci.shape == (3, 2)
        q = stats.t.ppf(0.975, result.df_residual)
        np.testing.assert_allclose(ci[:, 1] - ci[:, 0], 2 * q * result.standard_errors)

    def test_conf_int_level_validated(self, simple_regression_data):
        with pytest.raises(ValueError, match="level"):
            lm('y ~ x1 + x2', simple_regression_data).conf_int(1.5)

    def test_summary_runs(self, simple_regression_data):
        s = lm('y ~ x1 + x2', simple_regression_data).summary()
        assert "R-squared" in s
        assert "Pr(>|t|)" in s
        assert "F-statistic" in s

    def test_no_intercept_uses_uncentred_tss(self, simple_regression_data):
        df = simple_regression_data
        result = lm('y ~ x1 + x2 - 1', df)
        y = df['y'].to_numpy()
        assert result.tss == pytest.approx(float(y @ y))
        assert result.df_model == 2


class TestDiagnostics:

    def test_hat_values_sum_to_p(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        assert result.hat_values.sum() == pytest.approx(3.0)

    def test_standardized_residuals(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        expected = result.residuals / (result.sigma * np.sqrt(1.0 - result.hat_values))
        np.testing.assert_allclose(result.standardized_residuals, expected)

    def test_cooks_distance(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        r = result.standardized_residuals
        h = result.hat_values
        np.testing.assert_allclose(result.cooks_distance, r ** 2 * h / (3 * (1 - h)))

    def test_loo_sigma_matches_refit(self, simple_regression_data):
        df = simple_regression_data
        result = lm('y ~ x1 + x2', df)
        refit = lm('y ~ x1 + x2', df.drop(index=7))
        assert result.loo_sigma[7] == pytest.approx(refit.sigma)

    def test_se_fit(self, simple_regression_data):
        result = lm('y ~ x1 + x2', simple_regression_data)
        np.testing.assert_allclose(result.se_fit, result.sigma * np.sqrt(result.hat_values))


class TestMissingValues:

    @pytest.fixture
    def with_gaps(self, simple_regression_data):
        df = simple_regression_data.copy()
        df.loc[[3, 10], 'y'] = np.nan
        df.loc[20, 'x1'] = np.nan
        return df

    def test_exclude_keeps_alignment(self, with_gaps):
        result = lm('y ~ x1 + x2', with_gaps)
        assert result.nobs == 97
        assert result.n_excluded == 3
        assert len(result.fitted_values) == 100
        assert np.isnan(result.fitted_values[[3, 10, 20]]).all()
        assert np.isfinite(np.delete(result.residuals, [3, 10, 20])).all()
        np.testing.assert_array_equal(result.positions, np.arange(100))

    def test_drop_omits_rows(self, with_gaps):
        result = lm('y ~ x1 + x2', with_gaps, na_action='drop')
        assert len(result.fitted_values) == 97
        assert 3 not in result.positions

    def test_exclude_and_drop_same_estimates(self, with_gaps):
        a = lm('y ~ x1 + x2', with_gaps)
        b = lm('y ~ x1 + x2', with_gaps, na_action='drop')
        np.testing.assert_allclose(a.coefficients, b.coefficients)

    def test_nonfinite_after_transform_warns(self):
        df = pd.DataFrame({'x': [1.0, 2.0, 3.0, 4.0, 5.0], 'y': [0.0, 2.0, 3.0, 5.0, 4.0]})
        result = lm('log(y) ~ x', df)
        assert result.nobs == 4
        assert any("non-finite" in w for w in result.warnings)


class TestDegenerate:

    def test_collinear_raises(self, collinear_data):
        with pytest.raises(DegenerateModelError) as excinfo:
            lm('y ~ x1 + x2 + x3', collinear_data)
        assert excinfo.value.reason == 'rank_deficient'
        assert excinfo.value.rank == 3
        assert excinfo.value.expected_rank == 4

    def test_too_few_rows(self):
        with pytest.raises(DegenerateModelError) as excinfo:
            lm('y ~ x', {'x': [1.0], 'y': [2.0]})
        assert excinfo.value.reason == 'insufficient_observations'

    def test_constant_response_r_squared_undefined(self):
        result = lm('y ~ x', {'x': [1.0, 2.0, 3.0, 4.0], 'y': [5.0] * 4})
        assert result.tss == 0
        assert np.isnan(result.r_squared)
        assert np.isnan(result.adjusted_r_squared)
        np.testing.assert_allclose(result.coefficients, [5.0, 0.0], atol=1e-12)

    def test_saturated_model_fits(self):
        result = lm('y ~ factor(g)', {'g': ['a', 'b', 'c'], 'y': [1.0, 4.0, 2.0]})
        assert result.df_residual == 0
        assert np.isnan(result.standard_errors).all()
        assert np.isnan(result.sigma)
        np.testing.assert_allclose(result.fitted_values, [1.0, 4.0, 2.0])
        assert any("saturated" in w for w in result.warnings)


class TestValidation:

    def test_empty_input(self):
        with pytest.raises(EmptyInputError):
            lm('y ~ x', pd.DataFrame({'x': [], 'y': []}))

    def test_empty_checked_before_formula(self):
        with pytest.raises(EmptyInputError):
            lm('not a formula', pd.DataFrame({'x': [], 'y': []}))

    def test_bad_formula(self, simple_regression_data):
        with pytest.raises(FormulaError):
            lm('y ~ x1:x2', simple_regression_data)

    def test_missing_column(self, simple_regression_data):
        with pytest.raises(MissingColumnError):
            lm('y ~ x9', simple_regression_data)

    def test_bad_na_action(self, simple_regression_data):
        with pytest.raises(ValidationError, match="na_action"):
            lm('y ~ x1', simple_regression_data, na_action='omit')


class TestBackendSelection:
    """Test backend dispatch logic."""

    @pytest.mark.parametrize("backend", ['auto', 'cpu', 'cpu_qr'])
    def test_cpu_backends(self, simple_regression_data, backend):
        result = lm('y ~ x1 + x2', simple_regression_data, backend=backend)
        assert result.backend_name == 'cpu_qr'

    def test_invalid_backend_raises(self, simple_regression_data):
        with pytest.raises(ValueError, match="Unknown backend"):
            lm('y ~ x1 + x2', simple_regression_data, backend='nonsense')

    def test_timing_recorded(self, simple_regression_data):
        timing = lm('y ~ x1 + x2', simple_regression_data).timing
        assert 'qr_solve' in timing
        assert timing['total_seconds'] >= 0.0
