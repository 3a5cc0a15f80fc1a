"""
QR decomposition kernels.

Column-pivoted QR via LAPACK (through SciPy). Pivoting makes the
numerical rank readable from the diagonal of R, which is how
rank-deficient designs (collinear predictors, empty factor levels) are
detected before any coefficient is reported.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy import linalg as sp_linalg

from pytidyfit.core.exceptions import DegenerateModelError

# Column j of the pivoted factorization counts toward the rank while
# |R[j, j]| exceeds RANK_TOLERANCE times the norm of that original column,
# the criterion of R's dqrdc2 (lm default tol).
RANK_TOLERANCE = 1e-7


@dataclass(frozen=True)
class QRResult:
    """
    Result of a column-pivoted QR decomposition, X[:, pivot] = Q @ R.

    Attributes:
        Q: Orthonormal columns (n x k, k = min(n, p))
        R: Upper triangular factor (k x p)
        pivot: Column permutation applied to X
        rank: Numerical rank determined from the R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    pivot: NDArray[np.intp]
    rank: int


def qr_cpu(
    X: NDArray[np.floating[Any]],
    tol: float = RANK_TOLERANCE,
) -> QRResult:
    """
    Economy-size column-pivoted QR decomposition.

    Args:
        X: Matrix to decompose (n x p)
        tol: Relative tolerance for the rank decision

    Returns:
        QRResult with Q, R, pivot and numerical rank
    """
    n, p = X.shape
    if n == 0 or p == 0:
        return QRResult(
            Q=np.zeros((n, 0)), R=np.zeros((0, p)),
            pivot=np.arange(p), rank=0,
        )

    Q, R, pivot = sp_linalg.qr(X, mode='economic', pivoting=True)

    diag_R = np.abs(np.diag(R))
    col_norms = np.linalg.norm(X, axis=0)[pivot[:diag_R.size]]
    dependent = np.flatnonzero(~(diag_R > tol * col_norms))
    rank = int(dependent[0]) if dependent.size else diag_R.size

    return QRResult(Q=Q, R=R, pivot=pivot, rank=rank)


def qr_solve(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    tol: float = RANK_TOLERANCE,
) -> tuple[NDArray[np.floating[Any]], QRResult]:
    """
    Solve least squares min_b ||y - X b||^2 through pivoted QR.

    The solution is computed as:
        X P = Q R
        b[P] = R^-1 Q'y

    Args:
        X: Design matrix (n x p), n >= p
        y: Response vector (n,)
        tol: Relative tolerance for the rank decision

    Returns:
        (coefficients in the original column order, QRResult)

    Raises:
        DegenerateModelError: If X is rank-deficient
    """
    n, p = X.shape
    qr_result = qr_cpu(X, tol=tol)

    if qr_result.rank < p:
        raise DegenerateModelError(
            f"Design matrix is rank-deficient: rank={qr_result.rank}, "
            f"expected={p}. Some predictors are linearly dependent "
            f"(collinear columns or a factor level with no observations).",
            reason='rank_deficient',
            rank=qr_result.rank,
            expected_rank=p,
            n_obs=n,
        )

    Qty = qr_result.Q.T @ y
    beta_pivoted = sp_linalg.solve_triangular(qr_result.R[:p, :p], Qty[:p], lower=False)

    beta = np.empty(p, dtype=np.float64)
    beta[qr_result.pivot] = beta_pivoted
    return beta, qr_result


def unscaled_covariance(qr_result: QRResult) -> NDArray[np.floating[Any]]:
    """
    (X'X)^-1 in the original column order, from a full-rank QR.

    With X P = Q R, (X'X)^-1 = P R^-1 R^-T P'.
    """
    p = qr_result.R.shape[1]
    R_inv = sp_linalg.solve_triangular(qr_result.R[:p, :p], np.eye(p), lower=False)
    cov_pivoted = R_inv @ R_inv.T

    cov = np.empty((p, p), dtype=np.float64)
    cov[np.ix_(qr_result.pivot, qr_result.pivot)] = cov_pivoted
    return cov


def hat_diagonal(qr_result: QRResult) -> NDArray[np.floating[Any]]:
    """Leverages h_ii = diag(Q Q') for a full-rank QR."""
    return np.einsum('ij,ij->i', qr_result.Q, qr_result.Q)
