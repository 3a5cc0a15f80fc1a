"""
Shared plumbing for the summary views.

Normalizes every accepted input (GroupedFit, a single LinearSolution, or
a plain mapping of keys to LinearSolution / GroupFit) into one shape:
key column names plus a list of GroupFit entries, with the source table
and missing-value policy needed for observation-level output.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from pytidyfit.core.exceptions import ValidationError
from pytidyfit.core.table import Table
from pytidyfit.grouped.solution import GroupFit, GroupedFit
from pytidyfit.regression._formula import Formula
from pytidyfit.regression.solution import LinearSolution

# Model-level columns, after the key columns
MODEL_COLUMNS = (
    'status', 'error',
    'r_squared', 'adj_r_squared', 'sigma', 'statistic', 'p_value',
    'df', 'df_residual', 'nobs', 'n_excluded',
    'log_lik', 'aic', 'bic', 'deviance',
)
MODEL_INT_COLUMNS = ('df', 'df_residual', 'nobs', 'n_excluded')

# Coefficient-level columns, after the key columns
COEFFICIENT_COLUMNS = (
    'term', 'variable', 'level', 'estimate', 'std_error', 'statistic', 'p_value',
)
CONF_INT_COLUMNS = ('conf_low', 'conf_high')

# Observation-level computed columns, after key, row and raw variable columns
ROW_COLUMN = '.row'
OBSERVATION_COLUMNS = (
    '.fitted', '.resid', '.std_resid', '.hat', '.cooksd', '.sigma', '.se_fit',
)

STATUS_OK = 'ok'
STATUS_DEGENERATE = 'degenerate'


@dataclass(frozen=True, eq=False)
class Collected:
    """Normalized summary input."""
    group_columns: tuple[str, ...]
    entries: tuple[GroupFit, ...]
    table: Table | None
    formula: Formula | None
    na_action: str


def collect(fits: Any, group_columns: Sequence[str] | None = None) -> Collected:
    """
    Normalize a summary input.

    Raises:
        ValidationError: If the input is not a supported fit container or
            ``group_columns`` does not match the key length
    """
    if isinstance(fits, GroupedFit):
        columns = tuple(group_columns) if group_columns is not None else fits.group_columns
        _check_key_length(columns, fits.keys())
        return Collected(
            group_columns=columns,
            entries=tuple(fits.values()),
            table=fits.table,
            formula=fits.formula,
            na_action=fits.na_action,
        )

    if isinstance(fits, LinearSolution):
        return Collected(
            group_columns=(),
            entries=(_wrap((), fits),),
            table=fits.design.frame.table,
            formula=fits.design.formula,
            na_action=fits.design.na_action,
        )

    if isinstance(fits, Mapping):
        entries = tuple(
            _wrap(key if isinstance(key, tuple) else (key,), value)
            for key, value in fits.items()
        )
        if group_columns is not None:
            columns = tuple(group_columns)
        else:
            columns = _default_columns(entries)
        _check_key_length(columns, [entry.key for entry in entries])

        reference = next((entry.model for entry in entries if entry.ok), None)
        return Collected(
            group_columns=columns,
            entries=entries,
            table=reference.design.frame.table if reference else None,
            formula=reference.design.formula if reference else None,
            na_action=reference.design.na_action if reference else 'exclude',
        )

    raise ValidationError(
        f"fits: expected GroupedFit, LinearSolution or a mapping of them, "
        f"got {type(fits).__name__}"
    )


def _wrap(key: tuple, value: Any) -> GroupFit:
    if isinstance(value, GroupFit):
        return value
    if isinstance(value, LinearSolution):
        design = value.design
        return GroupFit(key=key, positions=design.positions, complete=design.mask, model=value)
    raise ValidationError(
        f"fits[{key!r}]: expected LinearSolution or GroupFit, got {type(value).__name__}"
    )


def _default_columns(entries: Sequence[GroupFit]) -> tuple[str, ...]:
    width = max((len(entry.key) for entry in entries), default=0)
    if width == 1:
        return ('group',)
    return tuple(f"group_{i}" for i in range(1, width + 1))


def _check_key_length(columns: tuple[str, ...], keys: Any) -> None:
    for key in keys:
        if len(key) != len(columns):
            raise ValidationError(
                f"group_columns: {list(columns)} has {len(columns)} names but "
                f"key {key!r} has {len(key)} values"
            )


def key_record(columns: tuple[str, ...], key: tuple) -> dict[str, Any]:
    return dict(zip(columns, key))


def level_array(levels: Sequence[Any]) -> pd.api.extensions.ExtensionArray:
    """
    Typed array for factor levels.

    Nullable Int64 when every level is an integer, Float64 when every level
    is a real number, object otherwise.
    """
    present = [v for v in levels if v is not None]
    numeric = all(
        isinstance(v, (int, float, np.integer, np.floating)) and not isinstance(v, (bool, np.bool_))
        for v in present
    )
    if present and numeric and all(isinstance(v, (int, np.integer)) for v in present):
        return pd.array(list(levels), dtype='Int64')
    if present and numeric:
        return pd.array(list(levels), dtype='Float64')
    return pd.array(list(levels), dtype=object)
