"""
Contrast coding and model matrix construction.

Handles the translation from evaluated formula terms to a numeric design
matrix for one set of rows (one partition).

Key concepts:
    - Treatment coding: k-1 indicator columns (baseline = first retained level)
    - Full coding: k indicator columns, used for the first factor when the
      model has no intercept
    - CoefficientLabel: the structured identity of every column, carrying
      the typed level value so nothing downstream parses column names
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pytidyfit.core.exceptions import DegenerateModelError
from pytidyfit.regression._frame import FACTOR, EvaluatedTerm

INTERCEPT = '(Intercept)'


@dataclass(frozen=True)
class CoefficientLabel:
    """
    Identity of one design-matrix column.

    Attributes:
        name: Display name, e.g. 'factor(month)7', 'log(x)', '(Intercept)'
        term: Formula term the column belongs to, e.g. 'factor(month)'
        variable: Source column, or None for the intercept
        level: Typed factor level for indicator columns, else None
    """
    name: str
    term: str
    variable: str | None = None
    level: Any = None


@dataclass(frozen=True, eq=False)
class ModelMatrix:
    """
    Encoded design matrix with column metadata.

    Attributes:
        X: (n, p) float64 design matrix
        labels: One CoefficientLabel per column
        term_slices: term label -> column slice in X
        factor_levels: factor term label -> retained levels (in column order,
                       baseline first for treatment coding)
        has_intercept: whether column 0 is an intercept
    """
    X: NDArray[np.floating[Any]]
    labels: tuple[CoefficientLabel, ...]
    term_slices: dict[str, slice]
    factor_levels: dict[str, tuple[Any, ...]]
    has_intercept: bool

    @property
    def n(self) -> int:
        return self.X.shape[0]

    @property
    def p(self) -> int:
        return self.X.shape[1]


def encode_treatment(
    codes: NDArray[np.intp],
    kept: list[int],
    *,
    full: bool = False,
) -> tuple[NDArray[np.floating[Any]], list[int]]:
    """
    Indicator coding for one factor.

    Args:
        codes: Level codes for the rows being encoded
        kept: Level codes that get a column, in level order
        full: If True every kept level gets a column; otherwise the first
              kept level is the baseline and is dropped

    Returns:
        (X_coded, coded) where X_coded is (n, len(coded)) and coded are
        the level codes of its columns
    """
    coded = kept if full else kept[1:]
    if not coded:
        return np.empty((len(codes), 0), dtype=np.float64), []
    X = (codes[:, np.newaxis] == np.asarray(coded)[np.newaxis, :]).astype(np.float64)
    return X, coded


def format_level(level: Any) -> str:
    return str(level)


def build_model_matrix(
    terms: tuple[EvaluatedTerm, ...],
    rows: NDArray[np.intp],
    *,
    intercept: bool = True,
    drop_unused_levels: bool = True,
) -> ModelMatrix:
    """
    Build the design matrix for the table rows at ``rows``.

    Args:
        terms: Evaluated predictor terms
        rows: Table row positions to encode (all must be complete)
        intercept: Whether to prepend an intercept column
        drop_unused_levels: Drop factor levels that no row in ``rows`` has

    Returns:
        ModelMatrix for those rows

    Raises:
        DegenerateModelError: If a contrast-coded factor has fewer than
            two retained levels
    """
    n = len(rows)
    columns: list[NDArray[np.floating[Any]]] = []
    labels: list[CoefficientLabel] = []
    term_slices: dict[str, slice] = {}
    factor_levels: dict[str, tuple[Any, ...]] = {}
    offset = 0

    if intercept:
        columns.append(np.ones((n, 1), dtype=np.float64))
        labels.append(CoefficientLabel(name=INTERCEPT, term=INTERCEPT))
        term_slices[INTERCEPT] = slice(0, 1)
        offset = 1

    full_coding_available = not intercept

    for evaluated in terms:
        term = evaluated.term
        if evaluated.kind == FACTOR:
            codes = evaluated.values[rows]
            if drop_unused_levels:
                present = set(np.unique(codes).tolist())
                kept = [j for j in range(len(evaluated.levels)) if j in present]
            else:
                kept = list(range(len(evaluated.levels)))

            full = full_coding_available
            full_coding_available = False
            if not full and len(kept) < 2:
                raise DegenerateModelError(
                    f"{term.label}: needs at least 2 levels for contrast coding, "
                    f"got {len(kept)} among {n} usable rows",
                    reason='single_level_factor',
                    n_obs=n,
                )

            X_coded, coded = encode_treatment(codes, kept, full=full)
            factor_levels[term.label] = tuple(evaluated.levels[j] for j in kept)
            for j in coded:
                level = evaluated.levels[j]
                labels.append(CoefficientLabel(
                    name=f"{term.label}{format_level(level)}",
                    term=term.label,
                    variable=term.variable,
                    level=level,
                ))
        else:
            X_coded = evaluated.values[rows].reshape(-1, 1)
            labels.append(CoefficientLabel(
                name=term.label, term=term.label, variable=term.variable,
            ))

        ncols = X_coded.shape[1]
        columns.append(X_coded)
        term_slices[term.label] = slice(offset, offset + ncols)
        offset += ncols

    X = np.hstack(columns) if columns else np.empty((n, 0), dtype=np.float64)

    return ModelMatrix(
        X=X,
        labels=tuple(labels),
        term_slices=term_slices,
        factor_levels=factor_levels,
        has_intercept=intercept,
    )
