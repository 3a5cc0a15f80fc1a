"""
Regression Design.

Design takes an evaluated ModelFrame and a set of table rows (a whole
table or one partition of it), applies the missing-value policy, and
produces X (design matrix) and y (response) for the rows actually used,
together with the bookkeeping needed to put row-aligned outputs back in
their original positions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pytidyfit.core.exceptions import DegenerateModelError, MisalignedOutputError
from pytidyfit.core.table import Table
from pytidyfit.core.validation import check_na_action
from pytidyfit.regression._contrasts import CoefficientLabel, ModelMatrix, build_model_matrix
from pytidyfit.regression._formula import Formula, parse_formula
from pytidyfit.regression._frame import ModelFrame


@dataclass(frozen=True, eq=False)
class RegressionDesign:
    """
    Regression design for one set of table rows.

    Immutable after construction.

    Construction:
        RegressionDesign.from_table(table, 'log2(sales) ~ factor(month)')
        RegressionDesign.from_frame(frame, positions)     # one partition

    Attributes exposed as properties:
        X, y: Design matrix and response for the used rows
        positions: Table row positions of every row in the set
        mask: True where the row is used in the fit (aligned with positions)
        labels: CoefficientLabel per column of X
    """
    _frame: ModelFrame
    _matrix: ModelMatrix
    _y: NDArray[np.floating[Any]]
    _positions: NDArray[np.intp]
    _mask: NDArray[np.bool_]
    _na_action: str
    _n_nonfinite: int

    @classmethod
    def from_table(
        cls,
        table: Table,
        formula: str | Formula,
        *,
        na_action: str = 'exclude',
        drop_unused_levels: bool = True,
    ) -> RegressionDesign:
        """Build a design over every row of ``table``."""
        frame = ModelFrame.evaluate(table, parse_formula(formula))
        return cls.from_frame(
            frame, na_action=na_action, drop_unused_levels=drop_unused_levels,
        )

    @classmethod
    def from_frame(
        cls,
        frame: ModelFrame,
        positions: ArrayLike | None = None,
        *,
        na_action: str = 'exclude',
        drop_unused_levels: bool = True,
    ) -> RegressionDesign:
        """
        Build a design over the table rows at ``positions``.

        Args:
            frame: Evaluated formula over the whole table
            positions: Table row positions (default: all rows)
            na_action: 'exclude' keeps placeholders for unused rows in
                row-aligned outputs; 'drop' omits them
            drop_unused_levels: Drop factor levels absent from the used rows

        Raises:
            DegenerateModelError: If there are no usable rows, fewer usable
                rows than columns, or a factor collapses to one level
        """
        check_na_action(na_action)
        if positions is None:
            positions = np.arange(frame.n, dtype=np.intp)
        positions = np.asarray(positions, dtype=np.intp)

        mask = frame.complete[positions]
        used = positions[mask]
        n_used = len(used)

        if n_used == 0:
            raise DegenerateModelError(
                f"No usable observations: all {len(positions)} rows have a "
                f"missing or non-finite response or predictor",
                reason='insufficient_observations',
                n_obs=0,
            )

        matrix = build_model_matrix(
            frame.terms,
            used,
            intercept=frame.formula.intercept,
            drop_unused_levels=drop_unused_levels,
        )

        if n_used < matrix.p:
            raise DegenerateModelError(
                f"Too few observations: {n_used} usable rows for {matrix.p} "
                f"parameters",
                reason='insufficient_observations',
                expected_rank=matrix.p,
                n_obs=n_used,
            )

        return cls(
            _frame=frame,
            _matrix=matrix,
            _y=frame.response[used],
            _positions=positions,
            _mask=mask,
            _na_action=na_action,
            _n_nonfinite=int(frame.nonfinite[positions].sum()),
        )

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p), used rows only."""
        return self._matrix.X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,), used rows only."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations used in the fit."""
        return self._matrix.n

    @property
    def p(self) -> int:
        """Number of design-matrix columns."""
        return self._matrix.p

    @property
    def n_total(self) -> int:
        """Number of rows in the set, used or not."""
        return len(self._positions)

    @property
    def n_excluded(self) -> int:
        return self.n_total - self.n

    @property
    def n_nonfinite(self) -> int:
        """Rows excluded because a transform produced a non-finite value."""
        return self._n_nonfinite

    @property
    def positions(self) -> NDArray[np.intp]:
        return self._positions

    @property
    def mask(self) -> NDArray[np.bool_]:
        return self._mask

    @property
    def used_positions(self) -> NDArray[np.intp]:
        return self._positions[self._mask]

    @property
    def labels(self) -> tuple[CoefficientLabel, ...]:
        return self._matrix.labels

    @property
    def matrix(self) -> ModelMatrix:
        return self._matrix

    @property
    def frame(self) -> ModelFrame:
        return self._frame

    @property
    def formula(self) -> Formula:
        return self._frame.formula

    @property
    def has_intercept(self) -> bool:
        return self._matrix.has_intercept

    @property
    def na_action(self) -> str:
        return self._na_action

    @property
    def output_positions(self) -> NDArray[np.intp]:
        """Table positions that row-aligned outputs cover under na_action."""
        if self._na_action == 'exclude':
            return self._positions
        return self.used_positions

    def expand(self, values: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
        """
        Align a used-rows vector with ``output_positions``.

        Under 'exclude' the result has one entry per row in the set, NaN at
        unused rows; under 'drop' the values are returned unchanged.

        Raises:
            MisalignedOutputError: If ``values`` does not have one entry
                per used row
        """
        if len(values) != self.n:
            raise MisalignedOutputError(
                f"Row-aligned output has {len(values)} entries for {self.n} used rows",
                expected=self.n,
                actual=len(values),
            )
        if self._na_action == 'drop':
            return values
        full = np.full(self.n_total, np.nan, dtype=np.float64)
        full[self._mask] = values
        return full
