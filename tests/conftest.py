"""
Test configuration and fixtures for proximal operator tests.

Provides common test fixtures and a brute-force reference minimizer used to
check that every closed-form prox returns a global minimizer.
"""

import numpy as np
import pytest
from scipy import optimize


@pytest.fixture
def random_seed():
    """Fixed random seed for reproducible tests."""
    return 42


@pytest.fixture
def float32_tolerance():
    """Relative error budget of the reduced-precision LSP magnitude."""
    return float(np.finfo(np.float32).eps)


@pytest.fixture
def signed_vector(random_seed):
    """Mixed-sign test vector with exact zeros and values on both sides of typical thresholds."""
    rng = np.random.default_rng(random_seed)
    d = rng.laplace(scale=2.0, size=200)
    d[::17] = 0.0
    return d


def scalar_penalty(penalty, grid):
    """Evaluate r(x) at every point of ``grid`` through the penalty's own value()."""
    return np.array([penalty.value(np.array([g])) for g in grid])


def brute_force_prox_value(penalty, d_i, t=1.0, n_grid=4001):
    """
    Smallest objective 0.5*(x - d_i)^2 + t*r(x) found by a dense grid refined
    with a bounded scalar search. Upper bound on the true minimum.
    """
    radius = abs(d_i) + 1.0
    grid = np.linspace(-radius, radius, n_grid)
    f_grid = 0.5 * (grid - d_i) ** 2 + t * scalar_penalty(penalty, grid)
    best = float(np.min(f_grid))

    k = int(np.argmin(f_grid))
    lo, hi = grid[max(k - 1, 0)], grid[min(k + 1, n_grid - 1)]
    if hi > lo:
        res = optimize.minimize_scalar(
            lambda x: 0.5 * (x - d_i) ** 2 + t * penalty.value(np.array([x])),
            bounds=(lo, hi), method="bounded")
        best = min(best, float(res.fun))
    return best


def assert_sign_preserved(x, d):
    """Every nonzero output coordinate carries the sign of its input."""
    nonzero = x != 0
    assert np.all(np.sign(x[nonzero]) == np.sign(d[nonzero])), (
        f"Sign flipped at indices {np.flatnonzero(nonzero & (np.sign(x) != np.sign(d)))}"
    )
