"""
pytidyfit: per-group linear models with tidy summaries.

Fit one ordinary least squares model per partition of a table and turn
the collection of fits into long tables at three levels of detail.

Submodules:
    core: Table, exceptions, result envelope, numerical kernels
    regression: Formula parsing, design construction, lm()
    grouped: fit_grouped() and the GroupedFit mapping
    summarize: model-, coefficient- and observation-level views
"""

__version__ = "0.1.0"

from pytidyfit.core import (
    DegenerateModelError,
    EmptyInputError,
    FormulaError,
    MisalignedOutputError,
    MissingColumnError,
    PyTidyFitError,
    Table,
    ValidationError,
)
from pytidyfit.regression import LinearSolution, lm, parse_formula
from pytidyfit.grouped import GroupFit, GroupedFit, fit_grouped
from pytidyfit.summarize import (
    coefficient_level,
    failed_groups,
    model_level,
    observation_level,
    write_summaries,
)

__all__ = [
    "__version__",
    # Input
    "Table",
    # Fitting
    "lm",
    "parse_formula",
    "fit_grouped",
    "LinearSolution",
    "GroupFit",
    "GroupedFit",
    # Summaries
    "model_level",
    "coefficient_level",
    "observation_level",
    "failed_groups",
    "write_summaries",
    # Exceptions
    "PyTidyFitError",
    "ValidationError",
    "EmptyInputError",
    "MissingColumnError",
    "FormulaError",
    "DegenerateModelError",
    "MisalignedOutputError",
]
