"""
Regression backends.

Available backends:
    CPUQRBackend: CPU reference implementation using pivoted QR decomposition
"""

from pytidyfit.regression.backends.cpu import CPUQRBackend

__all__ = [
    "CPUQRBackend",
]
