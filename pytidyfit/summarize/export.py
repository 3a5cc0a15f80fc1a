"""
Delimited-text export of the three summary views.

Each view is written with a single header row and no index so external
plotting tools can read it directly.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pytidyfit.summarize.views import coefficient_level, model_level, observation_level

FILENAMES = {
    'model_level': 'model_level.csv',
    'coefficient_level': 'coefficient_level.csv',
    'observation_level': 'observation_level.csv',
}


def write_summaries(
    fits: Any,
    directory: str | Path,
    *,
    conf_int: bool = False,
    conf_level: float = 0.95,
    group_columns: Sequence[str] | None = None,
    sep: str = ',',
) -> dict[str, Path]:
    """
    Write model-, coefficient- and observation-level CSV files.

    Args:
        fits: GroupedFit, LinearSolution, or mapping of key -> fit
        directory: Output directory, created if needed
        conf_int: Add confidence intervals to the coefficient table
        conf_level: Confidence level for the intervals
        group_columns: Key column names for a plain mapping
        sep: Field delimiter

    Returns:
        View name -> path written
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    tables = {
        'model_level': model_level(fits, group_columns=group_columns),
        'coefficient_level': coefficient_level(
            fits, conf_int=conf_int, conf_level=conf_level, group_columns=group_columns,
        ),
        'observation_level': observation_level(fits, group_columns=group_columns),
    }

    paths: dict[str, Path] = {}
    for name, frame in tables.items():
        path = directory / FILENAMES[name]
        frame.to_csv(path, index=False, sep=sep)
        paths[name] = path
    return paths
