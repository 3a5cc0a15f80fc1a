"""
Tidy summaries of fitted models.

Public API:
    model_level(fits) -> DataFrame           one row per group
    coefficient_level(fits) -> DataFrame     one row per (group, coefficient)
    observation_level(fits) -> DataFrame     one row per (group, source row)
    failed_groups(fits) -> DataFrame         one row per failed group
    write_summaries(fits, directory) -> paths of the three CSV files

``fits`` may be a GroupedFit, a single LinearSolution, or a mapping of
keys to LinearSolution / GroupFit. Every view is a pure function of its
input: calling it twice gives equal tables.
"""

from pytidyfit.summarize._common import (
    COEFFICIENT_COLUMNS,
    MODEL_COLUMNS,
    OBSERVATION_COLUMNS,
    ROW_COLUMN,
)
from pytidyfit.summarize.views import (
    coefficient_level,
    failed_groups,
    model_level,
    observation_level,
)
from pytidyfit.summarize.export import write_summaries

__all__ = [
    "model_level",
    "coefficient_level",
    "observation_level",
    "failed_groups",
    "write_summaries",
    "MODEL_COLUMNS",
    "COEFFICIENT_COLUMNS",
    "OBSERVATION_COLUMNS",
    "ROW_COLUMN",
]
