"""
Core infrastructure for pytidyfit.

This module provides shared abstractions, utilities, and compute
infrastructure used by the domain submodules (regression, grouped,
summarize).

Key components:
    table: Table input container
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing and linear algebra kernels
"""

from pytidyfit.core.table import Table
from pytidyfit.core.result import Result
from pytidyfit.core.exceptions import (
    PyTidyFitError,
    ValidationError,
    EmptyInputError,
    MissingColumnError,
    FormulaError,
    DimensionError,
    NumericalError,
    DegenerateModelError,
    MisalignedOutputError,
)

__all__ = [
    # Data
    "Table",
    # Result
    "Result",
    # Exceptions
    "PyTidyFitError",
    "ValidationError",
    "EmptyInputError",
    "MissingColumnError",
    "FormulaError",
    "DimensionError",
    "NumericalError",
    "DegenerateModelError",
    "MisalignedOutputError",
]
