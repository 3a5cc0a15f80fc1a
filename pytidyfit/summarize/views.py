"""
Tidy summary views of fitted models.

Three pure functions, each turning a collection of fits into one long
table that carries the group-key columns:

    model_level(fits)        one row per group
    coefficient_level(fits)  one row per (group, coefficient)
    observation_level(fits)  one row per (group, source row)

A group whose fit failed never aborts a view. It appears with its key
columns populated and every computed field null.
"""

from collections.abc import Sequence
from typing import Any

import numpy as np
import pandas as pd

from pytidyfit.core.exceptions import MisalignedOutputError
from pytidyfit.grouped.solution import GroupFit
from pytidyfit.summarize._common import (
    COEFFICIENT_COLUMNS,
    CONF_INT_COLUMNS,
    MODEL_COLUMNS,
    MODEL_INT_COLUMNS,
    OBSERVATION_COLUMNS,
    ROW_COLUMN,
    STATUS_DEGENERATE,
    STATUS_OK,
    collect,
    key_record,
    level_array,
)


def model_level(fits: Any, *, group_columns: Sequence[str] | None = None) -> pd.DataFrame:
    """
    One row per group of model-level statistics.

    Columns: the key columns, then status ('ok' or 'degenerate'), error
    (failure message or null), r_squared, adj_r_squared, sigma,
    statistic (overall F), p_value (of F), df (model), df_residual, nobs
    (rows used), n_excluded, log_lik, aic, bic, deviance.

    Args:
        fits: GroupedFit, LinearSolution, or mapping of key -> fit
        group_columns: Key column names for a plain mapping

    Returns:
        New DataFrame, groups in fit order
    """
    collected = collect(fits, group_columns)
    records = []
    for entry in collected.entries:
        record = key_record(collected.group_columns, entry.key)
        if entry.ok:
            record.update(_model_metrics(entry))
        else:
            record.update({column: None for column in MODEL_COLUMNS})
            record['status'] = STATUS_DEGENERATE
            record['error'] = str(entry.error)
        records.append(record)

    frame = pd.DataFrame.from_records(
        records, columns=[*collected.group_columns, *MODEL_COLUMNS],
    )
    for column in MODEL_COLUMNS:
        if column in MODEL_INT_COLUMNS:
            frame[column] = frame[column].astype('Int64')
        elif column not in ('status', 'error'):
            frame[column] = frame[column].astype('float64')
    return frame


def failed_groups(fits: Any, *, group_columns: Sequence[str] | None = None) -> pd.DataFrame:
    """
    One row per group whose fit failed.

    Columns: the key columns, reason, error, n_rows.
    """
    collected = collect(fits, group_columns)
    records = []
    for entry in collected.entries:
        if entry.ok:
            continue
        record = key_record(collected.group_columns, entry.key)
        record['reason'] = entry.error.reason
        record['error'] = str(entry.error)
        record['n_rows'] = entry.n_rows
        records.append(record)
    return pd.DataFrame.from_records(
        records, columns=[*collected.group_columns, 'reason', 'error', 'n_rows'],
    )


def coefficient_level(
    fits: Any,
    *,
    conf_int: bool = False,
    conf_level: float = 0.95,
    group_columns: Sequence[str] | None = None,
) -> pd.DataFrame:
    """
    One row per (group, coefficient).

    Columns: the key columns, then term (coefficient name, e.g.
    'factor(month)7'), variable (source column, null for the intercept),
    level (typed factor level, null for non-factor terms), estimate,
    std_error, statistic (t), p_value, and with ``conf_int`` conf_low and
    conf_high.

    ``level`` is recorded at fit time, so ``level == 7`` selects the
    July indicator without parsing term names.

    Args:
        fits: GroupedFit, LinearSolution, or mapping of key -> fit
        conf_int: Add confidence interval columns
        conf_level: Confidence level for the intervals
        group_columns: Key column names for a plain mapping
    """
    collected = collect(fits, group_columns)
    columns = [*collected.group_columns, *COEFFICIENT_COLUMNS]
    if conf_int:
        columns.extend(CONF_INT_COLUMNS)

    keys: list[dict[str, Any]] = []
    terms: list[Any] = []
    variables: list[Any] = []
    levels: list[Any] = []
    numbers: list[list[float]] = []

    for entry in collected.entries:
        record = key_record(collected.group_columns, entry.key)
        if not entry.ok:
            keys.append(record)
            terms.append(None)
            variables.append(None)
            levels.append(None)
            numbers.append([np.nan] * (6 if conf_int else 4))
            continue

        model = entry.model
        stats = [model.coefficients, model.standard_errors, model.t_statistics, model.p_values]
        if conf_int:
            bounds = model.conf_int(conf_level)
            stats.extend([bounds[:, 0], bounds[:, 1]])
        for i, label in enumerate(model.coefficient_labels):
            keys.append(record)
            terms.append(label.name)
            variables.append(label.variable)
            levels.append(label.level)
            numbers.append([float(stat[i]) for stat in stats])

    data: dict[str, Any] = {
        column: [record[column] for record in keys] for column in collected.group_columns
    }
    data['term'] = pd.array(terms, dtype=object)
    data['variable'] = pd.array(variables, dtype=object)
    data['level'] = level_array(levels)
    numeric_columns = [c for c in columns if c not in (*collected.group_columns, 'term', 'variable', 'level')]
    values = np.asarray(numbers, dtype=np.float64).reshape(len(numbers), len(numeric_columns))
    for j, column in enumerate(numeric_columns):
        data[column] = values[:, j]

    return pd.DataFrame(data, columns=columns)


def observation_level(fits: Any, *, group_columns: Sequence[str] | None = None) -> pd.DataFrame:
    """
    One row per (group, source row) with fitted values and diagnostics.

    Columns: the key columns, '.row' (original row position in the source
    table), the raw formula variables, then '.fitted', '.resid',
    '.std_resid' (standardized residual), '.hat' (leverage), '.cooksd'
    (Cook's distance), '.sigma' (leave-one-out residual standard error)
    and '.se_fit'.

    Under na_action='exclude' every partition row is present, with null
    computed fields at rows excluded from the fit; under 'drop' only the
    rows used by the fit are present. Failed groups contribute their rows
    with null computed fields.

    Raises:
        MisalignedOutputError: If a group's output length disagrees with
            its partition (an internal defect)
    """
    collected = collect(fits, group_columns)
    variables: list[str] = []
    if collected.formula is not None:
        variables = [
            v for v in collected.formula.variables if v not in collected.group_columns
        ]

    blocks = []
    for entry in collected.entries:
        rows = _output_rows(entry, collected.na_action)
        block = pd.DataFrame({
            column: [value] * len(rows)
            for column, value in key_record(collected.group_columns, entry.key).items()
        })
        block[ROW_COLUMN] = rows
        source = entry.model.design.frame.table if entry.ok else collected.table
        if source is not None:
            raw = source.select(variables)
            for variable in variables:
                block[variable] = raw[variable].iloc[rows].reset_index(drop=True)

        computed = _observation_values(entry, rows)
        for column, values in zip(OBSERVATION_COLUMNS, computed):
            block[column] = values
        blocks.append(block)

    columns = [*collected.group_columns, ROW_COLUMN, *variables, *OBSERVATION_COLUMNS]
    if not blocks:
        return pd.DataFrame(columns=columns)
    return pd.concat(blocks, ignore_index=True)[columns]


def _model_metrics(entry: GroupFit) -> dict[str, Any]:
    model = entry.model
    return {
        'status': STATUS_OK,
        'error': None,
        'r_squared': model.r_squared,
        'adj_r_squared': model.adjusted_r_squared,
        'sigma': model.sigma,
        'statistic': model.f_statistic,
        'p_value': model.f_p_value,
        'df': model.df_model,
        'df_residual': model.df_residual,
        'nobs': model.nobs,
        'n_excluded': model.n_excluded,
        'log_lik': model.log_likelihood,
        'aic': model.aic,
        'bic': model.bic,
        'deviance': model.deviance,
    }


def _output_rows(entry: GroupFit, na_action: str) -> np.ndarray:
    if entry.ok:
        return entry.model.positions
    if na_action == 'drop':
        return entry.positions[entry.complete]
    return entry.positions


def _observation_values(entry: GroupFit, rows: np.ndarray) -> list[np.ndarray]:
    if not entry.ok:
        return [np.full(len(rows), np.nan) for _ in OBSERVATION_COLUMNS]

    model = entry.model
    computed = [
        model.fitted_values,
        model.residuals,
        model.standardized_residuals,
        model.hat_values,
        model.cooks_distance,
        model.loo_sigma,
        model.se_fit,
    ]
    expected = len(entry.positions) if model.design.na_action == 'exclude' else int(entry.complete.sum())
    for values in computed:
        if len(values) != expected or len(rows) != expected:
            raise MisalignedOutputError(
                f"group {entry.key!r}: observation output has {len(values)} rows, "
                f"partition expects {expected}",
                expected=expected,
                actual=len(values),
            )
    return computed
