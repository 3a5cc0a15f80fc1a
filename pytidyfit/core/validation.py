"""
Input validation utilities for pytidyfit.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion beyond numeric conversion of numeric columns
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pytidyfit.core.exceptions import (
    EmptyInputError,
    MissingColumnError,
    ValidationError,
)
from pytidyfit.core.table import Table

NA_ACTIONS = ('exclude', 'drop')


def check_not_empty(table: Table, name: str = 'data') -> None:
    """
    Verify the table has at least one row.

    Raises:
        EmptyInputError: If the table has zero rows
    """
    if table.is_empty():
        raise EmptyInputError(
            f"{name}: table has 0 rows (columns: {list(table.keys())})"
        )


def check_columns(table: Table, names: Iterable[str], role: str) -> None:
    """
    Verify every name in ``names`` is a column of ``table``.

    Args:
        table: Table to check
        names: Required column names
        role: What the columns are for, used in the message
            ('group', 'formula')

    Raises:
        MissingColumnError: On the first absent column
    """
    available = table.keys()
    for name in names:
        if name not in table:
            raise MissingColumnError(
                f"{role} column '{name}' not found in table. "
                f"Available: {list(available)}",
                column=name,
                available=available,
            )


def check_group_columns(by: str | Sequence[str]) -> tuple[str, ...]:
    """
    Normalize and validate the grouping columns argument.

    Returns:
        Tuple of column names

    Raises:
        ValidationError: If no columns are given or names repeat
    """
    columns = (by,) if isinstance(by, str) else tuple(by)
    if not columns:
        raise ValidationError("by: at least one grouping column is required")
    for column in columns:
        if not isinstance(column, str):
            raise ValidationError(
                f"by: column names must be strings, got {type(column).__name__}"
            )
    if len(set(columns)) != len(columns):
        raise ValidationError(f"by: duplicate grouping columns {list(columns)}")
    return columns


def check_na_action(na_action: str) -> None:
    """
    Verify the missing-value policy name.

    Raises:
        ValidationError: If not one of 'exclude', 'drop'
    """
    if na_action not in NA_ACTIONS:
        raise ValidationError(
            f"na_action: expected one of {list(NA_ACTIONS)}, got {na_action!r}"
        )


def check_numeric_column(series: pd.Series, name: str) -> NDArray[np.floating[Any]]:
    """
    Convert a numeric (or boolean, or datetime) column to float64.

    Missing values become NaN. Datetimes become days since the epoch.

    Raises:
        ValidationError: If the column holds non-numeric data
    """
    if pd.api.types.is_datetime64_any_dtype(series):
        stamps = series.to_numpy(dtype='datetime64[ns]')
        days = stamps.astype('int64').astype(np.float64) / 86_400e9
        days[np.isnat(stamps)] = np.nan
        return days

    if pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series):
        return series.astype('float64').to_numpy(dtype=np.float64, na_value=np.nan)

    try:
        converted = pd.to_numeric(series, errors='raise')
    except (ValueError, TypeError) as e:
        raise ValidationError(
            f"{name}: non-numeric values in column (dtype {series.dtype}); "
            f"wrap it in factor() to treat it as categorical"
        ) from e
    return converted.astype('float64').to_numpy(dtype=np.float64, na_value=np.nan)

