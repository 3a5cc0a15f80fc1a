"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np
import pandas as pd


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Simple regression dataset for basic tests."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    y = 1.0 + 2.0 * x1 - 0.5 * x2 + rng.standard_normal(n) * 0.1
    return pd.DataFrame({'x1': x1, 'x2': x2, 'y': y})


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail)."""
    n = 50
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    return pd.DataFrame({
        'x1': x1,
        'x2': x2,
        'x3': x1 + x2,  # Perfect collinearity
        'y': rng.standard_normal(n),
    })


@pytest.fixture
def monthly_sales():
    """
    Two groups x 12 months, one missing response (group A, month 6).

    Rows are interleaved by month so partition positions are not
    contiguous.
    """
    records = []
    for month in range(1, 13):
        for group, base in (('A', 100.0), ('B', 250.0)):
            sales = base + 10.0 * month + (3.0 if month % 2 else -2.0)
            if group == 'A' and month == 6:
                sales = np.nan
            records.append({'group': group, 'month': month, 'sales': sales})
    return pd.DataFrame(records)


@pytest.fixture
def grouped_data(rng):
    """Three groups with different slopes plus noise."""
    frames = []
    for city, slope in (('Austin', 1.5), ('Dallas', -0.5), ('Houston', 3.0)):
        x = rng.uniform(0, 10, size=30)
        y = 2.0 + slope * x + rng.standard_normal(30) * 0.2
        frames.append(pd.DataFrame({'city': city, 'x': x, 'y': y}))
    return pd.concat(frames, ignore_index=True)
