"""
Tests for the Result envelope.
"""

import dataclasses

import pytest

from pytidyfit.core.result import Result


def _result(**kwargs):
    defaults = dict(params={'b': 1.0}, info={'method': 'qr'}, timing=None, backend_name='cpu_qr')
    defaults.update(kwargs)
    return Result(**defaults)


class TestResult:

    def test_default_warnings_empty(self):
        assert _result().warnings == ()

    def test_frozen(self):
        r = _result()
        with pytest.raises(dataclasses.FrozenInstanceError):
            r.backend_name = 'other'

    def test_has_warning_substring(self):
        r = _result(warnings=("Model is saturated (3 observations, 3 parameters)",))
        assert r.has_warning("saturated")
        assert not r.has_warning("non-finite")

