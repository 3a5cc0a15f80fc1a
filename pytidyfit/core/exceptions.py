"""
Exception hierarchy for pytidyfit.

All exceptions inherit from PyTidyFitError to allow catching any
library-specific error.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Caller errors are raised; per-group model failures are returned
      as values (DegenerateModelError instances stored on a GroupFit)
"""


class PyTidyFitError(Exception):
    """Base exception for all pytidyfit errors."""
    pass


class ValidationError(PyTidyFitError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks. These are
    fatal for the whole call: no partial result is produced.
    """
    pass


class EmptyInputError(ValidationError):
    """
    The input table has no rows.

    Raised before any partitioning or formula evaluation happens.
    """
    pass


class MissingColumnError(ValidationError, KeyError):
    """
    A requested group or formula column is absent from the table.

    Also a KeyError so that mapping-style access (``table['x']``) keeps
    the usual Python contract.

    Attributes:
        column: The column that was requested
        available: Column names the table does have
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        available: tuple[str, ...] = (),
    ):
        super().__init__(message)
        self.column = column
        self.available = available

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ''


class FormulaError(ValidationError):
    """
    A model formula could not be parsed.

    Attributes:
        formula: The offending formula text
    """

    def __init__(self, message: str, formula: str | None = None):
        super().__init__(message)
        self.formula = formula


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.
    """
    pass


class NumericalError(PyTidyFitError):
    """
    Numerical computation failed.

    Base class for errors arising from the data rather than the call.
    """
    pass


class DegenerateModelError(NumericalError):
    """
    A model cannot be estimated from the rows it was given.

    Deterministic for a given partition: retrying never helps. During a
    grouped fit this is recorded against the group key instead of being
    raised.

    Attributes:
        reason: 'insufficient_observations', 'rank_deficient' or
                'single_level_factor'
        rank: Numerical rank of the design matrix, if computed
        expected_rank: Number of columns in the design matrix
        n_obs: Number of usable observations
    """

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None,
        n_obs: int | None = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.rank = rank
        self.expected_rank = expected_rank
        self.n_obs = n_obs


class MisalignedOutputError(PyTidyFitError, AssertionError):
    """
    A row-aligned output disagrees in length with its source partition.

    This is an internal invariant violation, not a runtime condition:
    it signals a bug in pytidyfit and should never be caught.

    Attributes:
        expected: Number of rows the source partition has
        actual: Number of rows that were produced
    """

    def __init__(self, message: str, expected: int, actual: int):
        super().__init__(message)
        self.expected = expected
        self.actual = actual
