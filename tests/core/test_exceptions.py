"""
Tests for the pytidyfit exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyTidyFitError)
    - Diagnostic attributes on MissingColumnError, FormulaError,
      DegenerateModelError and MisalignedOutputError
    - Default attribute values (None for optional attributes)
"""

import pytest

from pytidyfit.core.exceptions import (
    DegenerateModelError,
    DimensionError,
    EmptyInputError,
    FormulaError,
    MisalignedOutputError,
    MissingColumnError,
    NumericalError,
    PyTidyFitError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyTidyFitError."""

    @pytest.mark.parametrize("cls", [
        ValidationError, EmptyInputError, MissingColumnError, FormulaError,
        DimensionError, NumericalError, DegenerateModelError,
    ])
    def test_catchable_as_base(self, cls):
        with pytest.raises(PyTidyFitError):
            raise cls("boom")

    @pytest.mark.parametrize("cls", [
        EmptyInputError, MissingColumnError, FormulaError, DimensionError,
    ])
    def test_caller_errors_are_validation_errors(self, cls):
        assert issubclass(cls, ValidationError)

    def test_degenerate_is_numerical_not_validation(self):
        assert issubclass(DegenerateModelError, NumericalError)
        assert not issubclass(DegenerateModelError, ValidationError)

    def test_missing_column_is_key_error(self):
        with pytest.raises(KeyError):
            raise MissingColumnError("no column 'x'", column='x')

    def test_misaligned_output_is_assertion_error(self):
        with pytest.raises(AssertionError):
            raise MisalignedOutputError("bad", expected=3, actual=2)

    def test_misaligned_output_not_validation(self):
        assert not issubclass(MisalignedOutputError, ValidationError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestMissingColumnError:

    def test_attributes(self):
        e = MissingColumnError("no 'x'", column='x', available=('a', 'b'))
        assert e.column == 'x'
        assert e.available == ('a', 'b')

    def test_str_is_plain_message(self):
        # KeyError would otherwise wrap the message in quotes
        e = MissingColumnError("no column 'x'", column='x')
        assert str(e) == "no column 'x'"

    def test_defaults(self):
        e = MissingColumnError("missing")
        assert e.column is None
        assert e.available == ()


class TestFormulaError:

    def test_attributes(self):
        e = FormulaError("bad formula", formula='y ~')
        assert e.formula == 'y ~'
        assert "bad formula" in str(e)

    def test_default_formula_none(self):
        assert FormulaError("bad").formula is None


class TestDegenerateModelError:

    def test_attributes(self):
        e = DegenerateModelError(
            "rank deficient", reason='rank_deficient',
            rank=2, expected_rank=3, n_obs=10,
        )
        assert e.reason == 'rank_deficient'
        assert e.rank == 2
        assert e.expected_rank == 3
        assert e.n_obs == 10

    def test_defaults_are_none(self):
        e = DegenerateModelError("failed")
        assert e.reason is None
        assert e.rank is None
        assert e.expected_rank is None
        assert e.n_obs is None


class TestMisalignedOutputError:

    def test_attributes(self):
        e = MisalignedOutputError("mismatch", expected=12, actual=11)
        assert e.expected == 12
        assert e.actual == 11
        assert str(e) == "mismatch"
