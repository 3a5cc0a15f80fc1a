"""
Formula evaluation over a whole table.

A ModelFrame holds, for every row of the source table, the response and
each predictor term after transforms and categorical coding, plus the
completeness mask the missing-value policies work from. It is evaluated
once per call so factor levels (and hence baselines and coefficient
labels) are identical across every partition fitted from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pytidyfit.core.table import Table
from pytidyfit.core.validation import check_columns, check_numeric_column
from pytidyfit.regression._formula import Formula, Term

NUMERIC = 'numeric'
FACTOR = 'factor'


@dataclass(frozen=True, eq=False)
class EvaluatedTerm:
    """
    One predictor term evaluated over every table row.

    Attributes:
        term: The formula term
        kind: 'numeric' or 'factor'
        values: float64 values (numeric; NaN = missing) or int level
                codes (factor; -1 = missing)
        levels: Ordered level values (factor only)
    """
    term: Term
    kind: str
    values: NDArray[Any]
    levels: tuple[Any, ...] = ()


@dataclass(frozen=True, eq=False)
class ModelFrame:
    """
    Evaluated formula variables for every row of a table.

    Attributes:
        table: Source table
        formula: The parsed formula
        response: Transformed response, NaN where missing or non-finite
        terms: Evaluated predictor terms, formula order
        complete: True where response and every predictor are usable
        nonfinite: True where a present value became non-finite under
                   its transform (e.g. log(0)); these rows are incomplete
    """
    table: Table
    formula: Formula
    response: NDArray[np.floating[Any]]
    terms: tuple[EvaluatedTerm, ...]
    complete: NDArray[np.bool_]
    nonfinite: NDArray[np.bool_]

    @classmethod
    def evaluate(cls, table: Table, formula: Formula) -> ModelFrame:
        """
        Evaluate ``formula`` over every row of ``table``.

        Raises:
            MissingColumnError: If a formula column is absent
            ValidationError: If a numeric term's column is not numeric
        """
        check_columns(table, formula.variables, 'formula')

        response, response_bad = _evaluate_numeric(table, formula.response)
        complete = ~np.isnan(response)
        nonfinite = response_bad

        evaluated: list[EvaluatedTerm] = []
        for term in formula.terms:
            series = table[term.variable]
            if term.is_factor or _is_categorical(series):
                codes, levels = _encode_levels(series)
                evaluated.append(EvaluatedTerm(term=term, kind=FACTOR, values=codes, levels=levels))
                complete &= codes >= 0
            else:
                values, bad = _evaluate_numeric(table, term)
                evaluated.append(EvaluatedTerm(term=term, kind=NUMERIC, values=values))
                complete &= ~np.isnan(values)
                nonfinite |= bad

        return cls(
            table=table,
            formula=formula,
            response=response,
            terms=tuple(evaluated),
            complete=complete,
            nonfinite=nonfinite,
        )

    @property
    def n(self) -> int:
        return len(self.response)


def _evaluate_numeric(table: Table, term: Term) -> tuple[NDArray[np.floating[Any]], NDArray[np.bool_]]:
    raw = check_numeric_column(table[term.variable], term.variable)
    values = np.asarray(term.apply(raw), dtype=np.float64)
    bad = ~np.isnan(raw) & ~np.isfinite(values)
    values = np.where(np.isfinite(values), values, np.nan)
    return values, bad


def _is_categorical(series: pd.Series) -> bool:
    if isinstance(series.dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(series):
        return True
    if pd.api.types.is_string_dtype(series) or pd.api.types.is_object_dtype(series):
        present = series.dropna()
        return not all(
            isinstance(v, (int, float, np.integer, np.floating)) and not isinstance(v, (bool, np.bool_))
            for v in present
        )
    return False


def level_value(value: Any) -> Any:
    """Normalize a level to a plain Python scalar; integral floats become ints."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _encode_levels(series: pd.Series) -> tuple[NDArray[np.intp], tuple[Any, ...]]:
    """Integer codes (-1 for missing) and ordered levels for a factor column."""
    missing = series.isna().to_numpy()

    if isinstance(series.dtype, pd.CategoricalDtype):
        levels = [level_value(c) for c in series.cat.categories]
    else:
        distinct = {level_value(v) for v, m in zip(series.tolist(), missing) if not m}
        try:
            levels = sorted(distinct)
        except TypeError:
            levels = sorted(distinct, key=str)

    index = {level: i for i, level in enumerate(levels)}
    codes = np.fromiter(
        (-1 if m else index.get(level_value(v), -1) for v, m in zip(series.tolist(), missing)),
        dtype=np.intp,
        count=len(series),
    )
    return codes, tuple(levels)
