"""
CPU reference backend for linear regression.

Uses column-pivoted QR decomposition via LAPACK (through SciPy) to solve
the least-squares problem, replicating R's lm() numerics: same rank
tolerance, same total sum of squares convention (centred with an
intercept, uncentred without).
"""

from typing import Any
import numpy as np

from pytidyfit.core.result import Result
from pytidyfit.core.compute.timing import Timer
from pytidyfit.core.compute.linalg.qr import (
    RANK_TOLERANCE,
    hat_diagonal,
    qr_solve,
    unscaled_covariance,
)
from pytidyfit.regression.design import RegressionDesign
from pytidyfit.regression.solution import LinearParams


class CPUQRBackend:
    """
    CPU backend using pivoted QR decomposition.

    Stateless: one instance may solve any number of designs, from any
    number of threads.
    """

    def __init__(self, tol: float = RANK_TOLERANCE):
        self._tol = tol

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: RegressionDesign) -> Result[LinearParams]:
        """
        Solve OLS via pivoted QR decomposition.

        Algorithm:
            1. Decompose X P = Q R, read the rank from diag(R)
            2. Solve R b = Q'y and undo the pivot
            3. Compute fitted values, residuals, leverages and (X'X)^-1

        Args:
            design: Validated regression design

        Returns:
            Result containing LinearParams

        Raises:
            DegenerateModelError: If X is rank-deficient
        """
        timer = Timer()
        timer.start()

        X = design.X
        y = design.y
        n, p = design.n, design.p

        with timer.section('qr_solve'):
            coefficients, qr_result = qr_solve(X, y, tol=self._tol)

        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values

        with timer.section('diagnostics'):
            hat_values = hat_diagonal(qr_result)
            cov_unscaled = unscaled_covariance(qr_result)

        with timer.section('statistics'):
            rss = float(residuals @ residuals)
            if design.has_intercept:
                tss = float(np.sum((y - np.mean(y)) ** 2))
            else:
                tss = float(y @ y)

        timer.stop()

        params = LinearParams(
            coefficients=coefficients,
            residuals=residuals,
            fitted_values=fitted_values,
            hat_values=hat_values,
            cov_unscaled=cov_unscaled,
            rss=rss,
            tss=tss,
            rank=qr_result.rank,
            df_residual=n - qr_result.rank,
        )

        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr_result.rank,
            'pivot': qr_result.pivot.tolist(),
            'na_action': design.na_action,
            'n_excluded': design.n_excluded,
        }

        warnings: list[str] = []
        if design.n_nonfinite:
            warnings.append(
                f"{design.n_nonfinite} observation(s) became non-finite after "
                f"transformation and were treated as missing"
            )
        if n == p:
            warnings.append(
                f"Model is saturated ({n} observations, {p} parameters): "
                f"no residual degrees of freedom, standard errors are undefined"
            )

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings),
        )
