"""
Table: the input container for pytidyfit.

Table is the "I have rows" abstraction. It doesn't know or care which
model will be fitted to it; it provides column access by name and row
access by position.

Usage:
    from pytidyfit import Table

    tbl = Table.from_dataframe(df)
    tbl = Table.from_file("txhousing.csv")
    tbl = Table.from_records([{'city': 'Austin', 'month': 1, 'sales': 10.0}, ...])
    tbl = Table.from_columns(city=[...], month=[...], sales=[...])

    tbl.keys()      # ('city', 'month', 'sales')
    tbl['sales']    # pandas Series
    tbl.take([0, 5, 7])

Rows are addressed by position 0..n-1. Those positions are the "original
row positions" reported in observation-level summaries.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike

from pytidyfit.core.exceptions import (
    DimensionError,
    EmptyInputError,
    MissingColumnError,
    ValidationError,
)


@dataclass(frozen=True)
class Table:
    """
    Immutable, column-homogeneous table.

    Construct via factory classmethods, not directly. The wrapped
    DataFrame is never handed out; ``to_dataframe()`` returns a copy.
    """
    _data: pd.DataFrame
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column Access ===

    def keys(self) -> tuple[str, ...]:
        """Column names, in table order."""
        return tuple(self._data.columns)

    def __getitem__(self, name: str) -> pd.Series:
        """
        Access a column by name.

        Raises:
            MissingColumnError: If the column is absent, listing the
                available columns
        """
        if name not in self._data.columns:
            available = self.keys()
            raise MissingColumnError(
                f"Table has no column '{name}'. Available: {list(available)}",
                column=name,
                available=available,
            )
        return self._data[name]

    def __contains__(self, name: object) -> bool:
        return name in self._data.columns

    def __len__(self) -> int:
        return len(self._data)

    # === Properties ===

    @property
    def n_rows(self) -> int:
        return len(self._data)

    @property
    def columns(self) -> tuple[str, ...]:
        return self.keys()

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    def is_empty(self) -> bool:
        return len(self._data) == 0

    # === Derived Tables ===

    def take(self, positions: ArrayLike) -> Table:
        """New Table holding the rows at ``positions``, renumbered from 0."""
        rows = self._data.iloc[np.asarray(positions, dtype=np.intp)]
        return Table(
            _data=rows.reset_index(drop=True),
            _metadata={**self._metadata, 'source': 'take'},
        )

    def select(self, names: Sequence[str]) -> pd.DataFrame:
        """Copy of the named columns as a DataFrame."""
        for name in names:
            self[name]
        return self._data.loc[:, list(names)].copy()

    def to_dataframe(self) -> pd.DataFrame:
        return self._data.copy()

    # === Factory Methods ===

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, *, source_path: str | None = None) -> Table:
        """Construct from a pandas DataFrame (copied, index reset)."""
        if not isinstance(df, pd.DataFrame):
            raise ValidationError(
                f"from_dataframe: expected pandas DataFrame, got {type(df).__name__}"
            )
        if df.columns.has_duplicates:
            dupes = sorted(set(df.columns[df.columns.duplicated()].astype(str)))
            raise ValidationError(f"from_dataframe: duplicate column names {dupes}")

        metadata: dict[str, Any] = {'source': 'dataframe'}
        if source_path:
            metadata['source'] = 'file'
            metadata['source_path'] = source_path

        return cls(_data=df.reset_index(drop=True).copy(), _metadata=metadata)

    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]]) -> Table:
        """
        Construct from a sequence of row mappings.

        Every record must have the same set of column names.
        """
        records = list(records)
        if records:
            expected = set(records[0].keys())
            for i, record in enumerate(records[1:], start=1):
                if set(record.keys()) != expected:
                    missing = sorted(expected - set(record.keys()))
                    extra = sorted(set(record.keys()) - expected)
                    raise ValidationError(
                        f"from_records: row {i} has inconsistent columns "
                        f"(missing={missing}, extra={extra})"
                    )
        df = pd.DataFrame.from_records(records)
        return cls(_data=df, _metadata={'source': 'records'})

    @classmethod
    def from_columns(cls, **columns: ArrayLike) -> Table:
        """Construct from named column arrays of equal length."""
        lengths = {name: len(values) for name, values in columns.items()}
        if len(set(lengths.values())) > 1:
            details = ", ".join(f"{name}={n}" for name, n in lengths.items())
            raise DimensionError(f"from_columns: inconsistent lengths: {details}")
        df = pd.DataFrame({name: pd.Series(values) for name, values in columns.items()})
        return cls(_data=df, _metadata={'source': 'columns'})

    @classmethod
    def from_file(cls, path: str | Path) -> Table:
        """Construct from a delimited text file (CSV or TSV)."""
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix == '.csv':
            sep = ','
        elif suffix in ('.tsv', '.tab'):
            sep = '\t'
        else:
            raise ValidationError(f"Unknown file format: {suffix!r} (expected .csv or .tsv)")

        try:
            df = pd.read_csv(path, sep=sep)
        except pd.errors.EmptyDataError as e:
            raise EmptyInputError(f"{path}: file is empty") from e

        return cls.from_dataframe(df, source_path=str(path))

    @classmethod
    def build(cls, data: Any) -> Table:
        """
        Convenience factory that dispatches to the appropriate from_* method.

        Examples:
            Table.build(df)                  # from_dataframe
            Table.build("data.csv")          # from_file
            Table.build([{...}, {...}])      # from_records
            Table.build({'x': [...], ...})   # from_columns
        """
        if isinstance(data, Table):
            return data
        if isinstance(data, pd.DataFrame):
            return cls.from_dataframe(data)
        if isinstance(data, (str, Path)):
            return cls.from_file(data)
        if isinstance(data, Mapping):
            return cls.from_columns(**data)
        if isinstance(data, Sequence):
            return cls.from_records(data)
        raise ValidationError(f"Cannot build a Table from {type(data).__name__}")

    def __repr__(self) -> str:
        return f"Table(n_rows={self.n_rows}, columns={list(self.keys())})"
