"""
Regression solution types.

Contains the parameter payload and user-facing solution wrapper.
"""

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray
from scipy import stats as sp_stats

from pytidyfit.core.result import Result
from pytidyfit.regression._contrasts import CoefficientLabel

if TYPE_CHECKING:
    from pytidyfit.regression.design import RegressionDesign


@dataclass(frozen=True, eq=False)
class LinearParams:
    """
    Parameter payload for linear regression.

    This is the immutable data computed by backends. Vectors indexed by
    observation cover the used rows only; LinearSolution aligns them.
    """
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    hat_values: NDArray[np.floating[Any]]
    cov_unscaled: NDArray[np.floating[Any]]
    rss: float
    tss: float
    rank: int
    df_residual: int


@dataclass
class LinearSolution:
    """
    User-facing regression results: the fitted model handle.

    Wraps the backend Result and provides accessors for coefficient
    inference, model-level statistics and per-observation diagnostics.
    Row-aligned accessors (fitted_values, residuals, hat_values, ...) follow
    the design's na_action: one entry per row of the fitted set with NaN
    at excluded rows under 'exclude', used rows only under 'drop'.
    """
    _result: Result[LinearParams]
    _design: 'RegressionDesign'

    # Cached computations
    _standard_errors: NDArray[np.floating[Any]] | None = None

    # === Coefficients ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def coefficient_labels(self) -> tuple[CoefficientLabel, ...]:
        return self._design.labels

    @property
    def coefficient_names(self) -> tuple[str, ...]:
        return tuple(label.name for label in self._design.labels)

    @property
    def coef(self) -> dict[str, float]:
        """Coefficients as name -> estimate."""
        return dict(zip(self.coefficient_names, self.coefficients.tolist()))

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """
        Standard errors of coefficients.

        Computed as SE(b) = sqrt(diag(sigma^2 (X'X)^-1)). NaN when the model
        has no residual degrees of freedom.
        """
        if self._standard_errors is not None:
            return self._standard_errors

        p = len(self.coefficients)
        if self.df_residual <= 0:
            self._standard_errors = np.full(p, np.nan, dtype=np.float64)
        else:
            sigma_sq = self.rss / self.df_residual
            self._standard_errors = np.sqrt(sigma_sq * np.diag(self._result.params.cov_unscaled))
        return self._standard_errors

    @property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        """t-statistics for coefficients."""
        with np.errstate(divide='ignore', invalid='ignore'):
            t = self.coefficients / self.standard_errors
        return np.where(np.isfinite(t), t, np.nan)

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided p-values of the t-statistics."""
        t = self.t_statistics
        if self.df_residual <= 0:
            return np.full_like(t, np.nan)
        return 2.0 * sp_stats.t.sf(np.abs(t), self.df_residual)

    def conf_int(self, level: float = 0.95) -> NDArray[np.floating[Any]]:
        """
        Confidence intervals for coefficients.

        Returns:
            (p, 2) array of lower and upper bounds
        """
        if not 0.0 < level < 1.0:
            raise ValueError(f"level must be in (0, 1), got {level}")
        if self.df_residual <= 0:
            return np.full((len(self.coefficients), 2), np.nan)
        q = sp_stats.t.ppf(0.5 + level / 2.0, self.df_residual)
        half = q * self.standard_errors
        return np.column_stack([self.coefficients - half, self.coefficients + half])

    # === Model-level statistics ===

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def deviance(self) -> float:
        return self.rss

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def df_model(self) -> int:
        """Numerator degrees of freedom of the overall F test."""
        return self.rank - int(self._design.has_intercept)

    @property
    def nobs(self) -> int:
        return self._design.n

    @property
    def n_excluded(self) -> int:
        return self._design.n_excluded

    @property
    def r_squared(self) -> float:
        # constant response: 0/0, undefined
        if self.tss == 0:
            return float('nan')
        return 1.0 - (self.rss / self.tss)

    @property
    def adjusted_r_squared(self) -> float:
        if self.df_residual <= 0:
            return float('nan')
        n_eff = self.nobs - int(self._design.has_intercept)
        return 1.0 - (1.0 - self.r_squared) * n_eff / self.df_residual

    @property
    def sigma(self) -> float:
        """Residual standard error."""
        if self.df_residual <= 0:
            return float('nan')
        return float(np.sqrt(self.rss / self.df_residual))

    @property
    def f_statistic(self) -> float:
        if self.df_model <= 0 or self.df_residual <= 0:
            return float('nan')
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(((self.tss - self.rss) / self.df_model) / (self.rss / self.df_residual))

    @property
    def f_p_value(self) -> float:
        f = self.f_statistic
        if np.isnan(f):
            return float('nan')
        return float(sp_stats.f.sf(f, self.df_model, self.df_residual))

    @property
    def log_likelihood(self) -> float:
        n = self.nobs
        with np.errstate(divide='ignore'):
            return float(0.5 * -n * (np.log(2.0 * np.pi) + 1.0 - np.log(n) + np.log(self.rss)))

    @property
    def aic(self) -> float:
        return -2.0 * self.log_likelihood + 2.0 * (self.rank + 1)

    @property
    def bic(self) -> float:
        return -2.0 * self.log_likelihood + np.log(self.nobs) * (self.rank + 1)

    # === Row-aligned diagnostics ===

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._design.expand(self._result.params.fitted_values)

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._design.expand(self._result.params.residuals)

    @property
    def hat_values(self) -> NDArray[np.floating[Any]]:
        return self._design.expand(self._result.params.hat_values)

    @property
    def standardized_residuals(self) -> NDArray[np.floating[Any]]:
        """Internally studentized residuals e_i / (sigma sqrt(1 - h_i))."""
        return self._design.expand(self._standardized_used())

    @property
    def cooks_distance(self) -> NDArray[np.floating[Any]]:
        h = self._result.params.hat_values
        r = self._standardized_used()
        with np.errstate(divide='ignore', invalid='ignore'):
            d = r ** 2 * h / (self.rank * (1.0 - h))
        return self._design.expand(np.where(np.isfinite(d), d, np.nan))

    @property
    def loo_sigma(self) -> NDArray[np.floating[Any]]:
        """Residual standard error with each observation left out."""
        e = self._result.params.residuals
        h = self._result.params.hat_values
        df = self.df_residual - 1
        if df <= 0:
            return self._design.expand(np.full(len(e), np.nan))
        with np.errstate(divide='ignore', invalid='ignore'):
            s2 = (self.rss - e ** 2 / (1.0 - h)) / df
            s = np.sqrt(np.where(s2 >= 0, s2, np.nan))
        return self._design.expand(np.where(np.isfinite(s), s, np.nan))

    @property
    def se_fit(self) -> NDArray[np.floating[Any]]:
        """Standard error of each fitted value."""
        return self._design.expand(self.sigma * np.sqrt(self._result.params.hat_values))

    def _standardized_used(self) -> NDArray[np.floating[Any]]:
        e = self._result.params.residuals
        h = self._result.params.hat_values
        with np.errstate(divide='ignore', invalid='ignore'):
            r = e / (self.sigma * np.sqrt(1.0 - h))
        return np.where(np.isfinite(r), r, np.nan)

    # === Envelope ===

    @property
    def design(self) -> 'RegressionDesign':
        return self._design

    @property
    def formula(self) -> str:
        return str(self._design.formula)

    @property
    def positions(self) -> NDArray[np.intp]:
        """Table row positions covered by the row-aligned outputs."""
        return self._design.output_positions

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """Generate R-style summary output."""
        lines = [
            "Linear Regression Results",
            "=" * 72,
            f"Formula: {self.formula}",
            f"Observations: {self.nobs} used, {self.n_excluded} excluded",
            "",
            "Coefficients:",
            f"{'':<24} {'Estimate':>12} {'Std. Error':>12} {'t value':>9} {'Pr(>|t|)':>11}",
            "-" * 72,
        ]

        for name, coef, se, t, pv in zip(
            self.coefficient_names, self.coefficients, self.standard_errors,
            self.t_statistics, self.p_values,
        ):
            if np.isnan(se):
                lines.append(f"{name:<24} {coef:>12.6f} {'NA':>12} {'NA':>9} {'NA':>11}")
            else:
                lines.append(
                    f"{name:<24} {coef:>12.6f} {se:>12.6f} {t:>9.3f} "
                    f"{_format_pvalue(pv):>11} {_significance_stars(pv)}"
                )

        lines.append("-" * 72)
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        lines.append("")
        lines.append(
            f"Residual standard error: {self.sigma:.4f} on {self.df_residual} degrees of freedom"
        )
        lines.append(
            f"Multiple R-squared: {self.r_squared:.4f},  "
            f"Adjusted R-squared: {self.adjusted_r_squared:.4f}"
        )
        if not np.isnan(self.f_statistic):
            lines.append(
                f"F-statistic: {self.f_statistic:.4f} on {self.df_model} and "
                f"{self.df_residual} DF,  p-value: {_format_pvalue(self.f_p_value)}"
            )
        for warning in self.warnings:
            lines.append(f"Warning: {warning}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LinearSolution(formula={self.formula!r}, n={self.nobs}, "
            f"p={len(self.coefficients)}, r_squared={self.r_squared:.4f})"
        )


def _significance_stars(p: float) -> str:
    """Return significance stars like R."""
    if np.isnan(p):
        return ' '
    if p < 0.001:
        return '***'
    elif p < 0.01:
        return '**'
    elif p < 0.05:
        return '*'
    elif p < 0.1:
        return '.'
    else:
        return ' '


def _format_pvalue(p: float) -> str:
    """Format p-value like R."""
    if np.isnan(p):
        return 'NA'
    if p < 2e-16:
        return '< 2e-16'
    elif p < 0.001:
        return f'{p:.2e}'
    else:
        return f'{p:.4f}'
