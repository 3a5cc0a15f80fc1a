"""
Command-line entry point.

    pytidyfit txhousing.csv --by city --formula 'log2(sales) ~ factor(month)' --out summaries/

Reads a delimited table, fits one model per group and writes the three
summary tables as CSV files into the output directory.
"""

import warnings
from enum import Enum
from pathlib import Path
from typing import List

import typer

from pytidyfit.core.exceptions import EmptyInputError, ValidationError
from pytidyfit.core.table import Table
from pytidyfit.grouped.solvers import fit_grouped

app = typer.Typer(add_completion=False)

EXIT_EMPTY_INPUT = 1
EXIT_INVALID_INPUT = 2


class NaActionOption(str, Enum):
    exclude = "exclude"
    drop = "drop"


@app.command()
def main(
    input_path: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="CSV or TSV file holding the table.",
    ),
    by: List[str] = typer.Option(..., "--by", help="Grouping column (repeat for several)."),
    formula: str = typer.Option(..., "--formula", help="Model formula, e.g. 'log2(sales) ~ factor(month)'."),
    out: Path = typer.Option(
        ...,
        "--out",
        file_okay=False,
        dir_okay=True,
        writable=True,
        help="Directory for the summary CSV files.",
    ),
    na_action: NaActionOption = typer.Option(
        NaActionOption.exclude, "--na-action", help="Missing-value policy.",
    ),
    n_jobs: int = typer.Option(1, "--n-jobs", help="Concurrent fits (-1 = all cores)."),
    conf_int: bool = typer.Option(
        False, "--conf-int", help="Add confidence intervals to the coefficient table.",
    ),
    conf_level: float = typer.Option(0.95, "--conf-level", help="Confidence level."),
) -> None:
    """
    Fit FORMULA to every group of INPUT and write tidy summaries.
    """
    try:
        table = Table.from_file(input_path)
        with warnings.catch_warnings():
            # Group failures are reported below from the fit itself
            warnings.simplefilter("ignore", RuntimeWarning)
            fits = fit_grouped(
                table, by, formula, na_action=na_action.value, n_jobs=n_jobs,
            )
    except EmptyInputError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=EXIT_EMPTY_INPUT) from exc
    except ValidationError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_INPUT) from exc

    paths = fits.write_summaries(out, conf_int=conf_int, conf_level=conf_level)

    typer.echo(
        f"Fitted {len(fits) - fits.n_failed} of {len(fits)} groups by {', '.join(by)}"
    )
    failures = fits.failures()
    if failures:
        typer.echo(f"{len(failures)} groups could not be fitted:")
        for key, error in failures.items():
            label = ", ".join(str(value) for value in key)
            typer.echo(f"  {label}: {error.reason}: {error}")
    for name, path in paths.items():
        typer.echo(f"Wrote {name}: {path}")


if __name__ == "__main__":
    app()
