"""
Per-group model fitting.

Public API:
    fit_grouped(data, by, formula, ...) -> GroupedFit

Each group's outcome is a GroupFit holding either a LinearSolution or the
DegenerateModelError that prevented the fit.
"""

from pytidyfit.grouped.design import GroupedDesign, GroupKey, Partition, partition_rows
from pytidyfit.grouped.solution import GroupFit, GroupedFit
from pytidyfit.grouped.solvers import fit_grouped

__all__ = [
    "fit_grouped",
    "GroupFit",
    "GroupedFit",
    "GroupedDesign",
    "GroupKey",
    "Partition",
    "partition_rows",
]
