"""
Linear algebra kernels for pytidyfit.

All functions follow these conventions:
    - CPU only, through NumPy/SciPy (LAPACK under the hood)
    - Each decomposition returns a structured result dataclass
    - Rank deficiency is reported as DegenerateModelError, immediately
"""

from pytidyfit.core.compute.linalg.qr import (
    RANK_TOLERANCE,
    QRResult,
    hat_diagonal,
    qr_cpu,
    qr_solve,
    unscaled_covariance,
)

__all__ = [
    "RANK_TOLERANCE",
    "QRResult",
    "hat_diagonal",
    "qr_cpu",
    "qr_solve",
    "unscaled_covariance",
]
