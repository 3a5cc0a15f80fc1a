"""
Shared compute infrastructure for pytidyfit.

This module provides timing utilities and linear algebra kernels that are
shared by the model backends.

IMPORTANT: This is NOT where model backends live. Those go in
{domain}/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    linalg: Linear algebra kernels (pivoted QR, leverages, covariance)
"""

from pytidyfit.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
