"""
Grouped design: partitioning a table by key columns.

GroupedDesign evaluates the formula once over the whole table and splits
the row positions into partitions, one per distinct key tuple. Every row
lands in exactly one partition; rows whose key has missing values form
their own partitions rather than being dropped.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pytidyfit.core.table import Table
from pytidyfit.core.validation import check_columns
from pytidyfit.regression._formula import Formula
from pytidyfit.regression._frame import ModelFrame

GroupKey = tuple[Any, ...]


@dataclass(frozen=True, eq=False)
class Partition:
    """
    One group's rows.

    Attributes:
        key: Group key, one Python scalar per grouping column
        positions: Table row positions, in table order
    """
    key: GroupKey
    positions: NDArray[np.intp]

    @property
    def n_rows(self) -> int:
        return len(self.positions)


@dataclass(frozen=True, eq=False)
class GroupedDesign:
    """
    Partitioned, formula-evaluated table.

    Construction:
        GroupedDesign.build(table, ('city',), formula)
        GroupedDesign.build(table, ('city', 'year'), formula, order=sort_key)
    """
    frame: ModelFrame
    group_columns: tuple[str, ...]
    partitions: tuple[Partition, ...]

    @classmethod
    def build(
        cls,
        table: Table,
        group_columns: tuple[str, ...],
        formula: Formula,
        *,
        order: Callable[[GroupKey], Any] | None = None,
    ) -> GroupedDesign:
        """
        Partition ``table`` and evaluate ``formula`` over it.

        Args:
            table: Non-empty input table
            group_columns: Grouping column names
            formula: Parsed formula
            order: Optional sort key over group keys; default is the order
                in which keys first occur in the table

        Raises:
            MissingColumnError: If a group or formula column is absent
        """
        check_columns(table, group_columns, 'group')
        frame = ModelFrame.evaluate(table, formula)
        partitions = partition_rows(table, group_columns)
        if order is not None:
            partitions = sorted(partitions, key=lambda part: order(part.key))
        return cls(frame=frame, group_columns=group_columns, partitions=tuple(partitions))

    @property
    def table(self) -> Table:
        return self.frame.table

    @property
    def n_groups(self) -> int:
        return len(self.partitions)


def partition_rows(table: Table, group_columns: Sequence[str]) -> list[Partition]:
    """
    Split row positions by the distinct values of ``group_columns``.

    Partitions come out in first-occurrence order of their keys.
    """
    keys_frame = table.select(group_columns)
    codes = (
        keys_frame.groupby(list(group_columns), sort=False, dropna=False, observed=True)
        .ngroup()
        .to_numpy()
    )

    order = np.argsort(codes, kind='stable')
    boundaries = np.flatnonzero(np.diff(codes[order])) + 1
    partitions = []
    for positions in np.split(order, boundaries):
        first = keys_frame.iloc[positions[0]]
        key = tuple(_key_value(first[column]) for column in group_columns)
        partitions.append(Partition(key=key, positions=positions.astype(np.intp)))
    return partitions


def _key_value(value: Any) -> Any:
    if value is pd.NaT or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value
