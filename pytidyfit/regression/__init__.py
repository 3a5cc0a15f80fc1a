"""
Linear models from formulas.

Public API:
    lm(formula, data, ...) -> LinearSolution

The lm() function is the single-model entry point. It handles:
    - Input validation
    - Formula parsing and evaluation
    - Design construction (missing-value policy, factor coding)
    - Backend selection
    - Result wrapping

Example:
    >>> from pytidyfit.regression import lm
    >>> model = lm('log2(sales) ~ factor(month)', table)
    >>> model.coefficient_labels[3].level
    4
    >>> print(model.summary())
"""

from pytidyfit.regression._formula import Formula, Term, parse_formula
from pytidyfit.regression._contrasts import CoefficientLabel
from pytidyfit.regression._frame import ModelFrame
from pytidyfit.regression.design import RegressionDesign
from pytidyfit.regression.solution import LinearSolution, LinearParams
from pytidyfit.regression.solvers import lm, solve_design

__all__ = [
    "lm",
    "solve_design",
    "parse_formula",
    "Formula",
    "Term",
    "CoefficientLabel",
    "ModelFrame",
    "RegressionDesign",
    "LinearSolution",
    "LinearParams",
]
