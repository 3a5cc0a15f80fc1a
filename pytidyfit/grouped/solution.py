"""
Grouped fit solution types.

GroupFit is the per-group outcome: exactly one of a fitted model or the
DegenerateModelError explaining why the group could not be fitted.
GroupedFit is the read-only mapping from group key to GroupFit that
fit_grouped() returns, held alongside (not inside) any table.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pytidyfit.core.exceptions import DegenerateModelError
from pytidyfit.core.table import Table
from pytidyfit.grouped.design import GroupKey
from pytidyfit.regression._formula import Formula
from pytidyfit.regression.solution import LinearSolution

if TYPE_CHECKING:
    from pathlib import Path


@dataclass(frozen=True, eq=False)
class GroupFit:
    """
    Outcome of fitting one partition.

    Attributes:
        key: Group key
        positions: Table row positions of every row in the partition
        complete: True where the row had a usable response and predictors
        model: The fitted model, or None if the fit failed
        error: The failure, or None if the fit succeeded
    """
    key: GroupKey
    positions: NDArray[np.intp]
    complete: NDArray[np.bool_]
    model: LinearSolution | None = None
    error: DegenerateModelError | None = None

    def __post_init__(self) -> None:
        if (self.model is None) == (self.error is None):
            raise ValueError("GroupFit needs exactly one of model or error")

    @property
    def ok(self) -> bool:
        return self.model is not None

    @property
    def n_rows(self) -> int:
        return len(self.positions)

    def unwrap(self) -> LinearSolution:
        """
        The fitted model.

        Raises:
            DegenerateModelError: The recorded failure, if the fit failed
        """
        if self.model is None:
            raise self.error
        return self.model

    def __repr__(self) -> str:
        outcome = repr(self.model) if self.ok else f"error={self.error.reason!r}"
        return f"GroupFit(key={self.key!r}, n_rows={self.n_rows}, {outcome})"


class GroupedFit(Mapping):
    """
    Mapping from group key to GroupFit, in partition order.

    Produced by fit_grouped(). Keys are tuples with one value per grouping
    column; ``fits[('Austin',)]`` returns that city's GroupFit.
    """

    def __init__(
        self,
        fits: tuple[GroupFit, ...],
        *,
        table: Table,
        group_columns: tuple[str, ...],
        formula: Formula,
        na_action: str,
        timing: dict[str, float] | None = None,
        warnings: tuple[str, ...] = (),
    ):
        self._fits = {fit.key: fit for fit in fits}
        self._table = table
        self._group_columns = group_columns
        self._formula = formula
        self._na_action = na_action
        self._timing = timing
        self._warnings = warnings

    # === Mapping protocol ===

    def __getitem__(self, key: GroupKey) -> GroupFit:
        if not isinstance(key, tuple):
            key = (key,)
        return self._fits[key]

    def __iter__(self) -> Iterator[GroupKey]:
        return iter(self._fits)

    def __len__(self) -> int:
        return len(self._fits)

    # === Accessors ===

    @property
    def group_columns(self) -> tuple[str, ...]:
        return self._group_columns

    @property
    def formula(self) -> Formula:
        return self._formula

    @property
    def table(self) -> Table:
        return self._table

    @property
    def na_action(self) -> str:
        return self._na_action

    @property
    def timing(self) -> dict[str, float] | None:
        return self._timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._warnings

    def successes(self) -> dict[GroupKey, LinearSolution]:
        return {key: fit.model for key, fit in self._fits.items() if fit.ok}

    def failures(self) -> dict[GroupKey, DegenerateModelError]:
        return {key: fit.error for key, fit in self._fits.items() if not fit.ok}

    @property
    def n_failed(self) -> int:
        return sum(1 for fit in self._fits.values() if not fit.ok)

    # === Summaries ===

    def model_level(self) -> pd.DataFrame:
        from pytidyfit.summarize import model_level
        return model_level(self)

    def coefficient_level(self, *, conf_int: bool = False, conf_level: float = 0.95) -> pd.DataFrame:
        from pytidyfit.summarize import coefficient_level
        return coefficient_level(self, conf_int=conf_int, conf_level=conf_level)

    def observation_level(self) -> pd.DataFrame:
        from pytidyfit.summarize import observation_level
        return observation_level(self)

    def write_summaries(self, directory: 'str | Path', **kwargs: Any) -> dict[str, 'Path']:
        from pytidyfit.summarize import write_summaries
        return write_summaries(self, directory, **kwargs)

    def summary(self) -> str:
        """Short text report of the grouped fit."""
        lines = [
            "Grouped Linear Regression",
            "=" * 60,
            f"Formula: {self._formula}",
            f"Groups: {len(self)} by {list(self._group_columns)} "
            f"({len(self) - self.n_failed} fitted, {self.n_failed} failed)",
        ]
        failures = self.failures()
        if failures:
            lines.append("")
            lines.append("Failed groups:")
            for key, error in failures.items():
                lines.append(f"  {key!r}: {error.reason}: {error}")
        if self._timing:
            lines.append("")
            lines.append(f"Time: {self._timing.get('total_seconds', 0):.4f}s")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"GroupedFit(formula={str(self._formula)!r}, by={list(self._group_columns)}, "
            f"groups={len(self)}, failed={self.n_failed})"
        )
