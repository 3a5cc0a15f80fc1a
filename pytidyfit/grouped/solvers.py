"""
Grouped fitting: one linear model per partition.

Public API:
    fit_grouped(data, by, formula, ...) -> GroupedFit
"""

import warnings
from collections.abc import Callable, Sequence
from typing import Any

from joblib import Parallel, delayed

from pytidyfit.core.compute.timing import Timer
from pytidyfit.core.exceptions import DegenerateModelError
from pytidyfit.core.table import Table
from pytidyfit.core.validation import check_group_columns, check_na_action, check_not_empty
from pytidyfit.grouped.design import GroupedDesign, GroupKey, Partition
from pytidyfit.grouped.solution import GroupFit, GroupedFit
from pytidyfit.regression._formula import Formula, parse_formula
from pytidyfit.regression.design import RegressionDesign
from pytidyfit.regression.solvers import NaAction, solve_design


def fit_grouped(
    data: Any,
    by: str | Sequence[str],
    formula: str | Formula,
    *,
    na_action: NaAction = 'exclude',
    drop_unused_levels: bool = True,
    order: Callable[[GroupKey], Any] | None = None,
    n_jobs: int = 1,
) -> GroupedFit:
    """
    Fit one linear model per group.

    Partitions ``data`` by the distinct values of the ``by`` columns and
    fits ``formula`` by ordinary least squares to each partition
    independently. A group that cannot be fitted (too few usable rows, a
    rank-deficient design, a factor left with one level) is recorded as a
    DegenerateModelError for its key; the other groups are unaffected.

    Args:
        data: Table, DataFrame, records, column mapping or CSV path
        by: Grouping column name(s)
        formula: R-style formula, e.g. 'log2(sales) ~ factor(month)'
        na_action: Missing-value policy:
            - 'exclude' (default): rows with a missing response or predictor
              are left out of each fit but keep a placeholder in row-aligned
              outputs, so residuals re-join to the source rows by position
            - 'drop': such rows are left out of row-aligned outputs too
        drop_unused_levels: Drop factor levels that have no usable rows in
            a group. With False, such a level makes that group's design
            rank-deficient.
        order: Optional sort key over group keys. Default order is first
            occurrence in ``data``.
        n_jobs: Number of concurrent fits (joblib threads; -1 = all cores)

    Returns:
        GroupedFit mapping each group key to its GroupFit

    Raises:
        EmptyInputError: If the table has no rows (checked first)
        FormulaError: If the formula cannot be parsed
        MissingColumnError: If a group or formula column is absent
        ValidationError: On an unknown na_action or bad ``by``

    Example:
        >>> fits = fit_grouped(txhousing, 'city', 'log2(sales) ~ factor(month)')
        >>> fits.model_level()
        >>> fits.coefficient_level().query("variable == 'month'")
        >>> fits.observation_level()[['city', '.row', '.resid']]
    """
    # === Input Validation ===
    # Whole-call errors: nothing is fitted if any of these fail
    table = Table.build(data)
    check_not_empty(table)
    group_columns = check_group_columns(by)
    parsed = parse_formula(formula)
    check_na_action(na_action)

    timer = Timer()
    timer.start()

    # === Partition ===
    with timer.section('partition'):
        design = GroupedDesign.build(table, group_columns, parsed, order=order)

    # === Fit ===
    with timer.section('fit'):
        fits = Parallel(n_jobs=n_jobs, prefer='threads')(
            delayed(_fit_partition)(
                design, partition,
                na_action=na_action, drop_unused_levels=drop_unused_levels,
            )
            for partition in design.partitions
        )

    timer.stop()

    failed = [fit for fit in fits if not fit.ok]
    messages: tuple[str, ...] = ()
    if failed:
        reasons = sorted({fit.error.reason for fit in failed})
        message = (
            f"{len(failed)} of {len(fits)} groups could not be fitted "
            f"({', '.join(reasons)}); see GroupedFit.failures()"
        )
        messages = (message,)
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    return GroupedFit(
        tuple(fits),
        table=table,
        group_columns=group_columns,
        formula=parsed,
        na_action=na_action,
        timing=timer.result(),
        warnings=messages,
    )


def _fit_partition(
    design: GroupedDesign,
    partition: Partition,
    *,
    na_action: str,
    drop_unused_levels: bool,
) -> GroupFit:
    """Fit one partition; a DegenerateModelError becomes the group's value."""
    complete = design.frame.complete[partition.positions]
    try:
        regression = RegressionDesign.from_frame(
            design.frame,
            partition.positions,
            na_action=na_action,
            drop_unused_levels=drop_unused_levels,
        )
        model = solve_design(regression)
    except DegenerateModelError as error:
        return GroupFit(
            key=partition.key, positions=partition.positions,
            complete=complete, error=error,
        )
    return GroupFit(
        key=partition.key, positions=partition.positions,
        complete=complete, model=model,
    )
