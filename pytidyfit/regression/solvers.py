"""
Solver dispatch for regression.

This module provides the lm() function (public API) and backend selection.
"""

from typing import Any, Literal

from pytidyfit.core.table import Table
from pytidyfit.core.validation import check_na_action, check_not_empty
from pytidyfit.regression._formula import Formula, parse_formula
from pytidyfit.regression._frame import ModelFrame
from pytidyfit.regression.design import RegressionDesign
from pytidyfit.regression.solution import LinearSolution
from pytidyfit.regression.backends.cpu import CPUQRBackend

# Type alias for backend selection
BackendChoice = Literal['auto', 'cpu', 'cpu_qr']

# Missing-value policy names
NaAction = Literal['exclude', 'drop']


def lm(
    formula: str | Formula,
    data: Any,
    *,
    na_action: NaAction = 'exclude',
    drop_unused_levels: bool = True,
    backend: BackendChoice = 'auto',
) -> LinearSolution:
    """
    Fit a linear model to a whole table.

    Solves the ordinary least squares problem:
        min_b ||y - X b||^2
    where y and X come from evaluating ``formula`` over ``data``.

    Args:
        formula: R-style formula, e.g. 'log2(sales) ~ factor(month)'
        data: Table, DataFrame, records, column mapping or CSV path
        na_action: Missing-value policy:
            - 'exclude': rows with a missing response or predictor are left
              out of the fit; row-aligned outputs keep a NaN placeholder at
              their position
            - 'drop': such rows are left out of row-aligned outputs too
        drop_unused_levels: Drop factor levels with no usable rows
        backend: Computational backend ('auto', 'cpu', 'cpu_qr')

    Returns:
        LinearSolution with coefficients, diagnostics, and summary methods

    Raises:
        EmptyInputError: If the table has no rows
        FormulaError: If the formula cannot be parsed
        MissingColumnError: If a formula column is absent
        DegenerateModelError: If the model cannot be estimated

    Example:
        >>> from pytidyfit import lm
        >>> model = lm('y ~ x', {'x': [1, 2, 3, 4], 'y': [2.1, 3.9, 6.2, 7.8]})
        >>> model.coef
        >>> print(model.summary())
    """
    # === Input Validation ===
    # This is the boundary - validate here, trust everywhere else
    table = Table.build(data)
    check_not_empty(table)
    parsed = parse_formula(formula)
    check_na_action(na_action)

    # === Construct Design ===
    frame = ModelFrame.evaluate(table, parsed)
    design = RegressionDesign.from_frame(
        frame, na_action=na_action, drop_unused_levels=drop_unused_levels,
    )

    # === Solve ===
    return solve_design(design, backend=backend)


def solve_design(design: RegressionDesign, *, backend: BackendChoice = 'auto') -> LinearSolution:
    """Fit an already-built design and wrap the result."""
    result = _get_backend(backend).solve(design)
    return LinearSolution(_result=result, _design=design)


def _get_backend(choice: BackendChoice) -> CPUQRBackend:
    """
    Select and instantiate the appropriate backend.

    Raises:
        ValueError: If unknown backend specified
    """
    if choice in ('auto', 'cpu', 'cpu_qr'):
        return CPUQRBackend()
    raise ValueError(f"Unknown backend: {choice!r}")
