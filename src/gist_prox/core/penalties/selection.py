"""
Candidate selection shared by the closed-form proximal solvers.

Each non-convex prox reduces, per coordinate, to a handful of stationary
candidates of a one-dimensional objective. The minimizer is picked either by
scoring every candidate (LSP, SCAD) or, for two candidates, by the sign of
the objective difference f(x1) - f(x2) (CapL1, MCP).

Tie-breaking rule: the lowest index wins, i.e. a later candidate only replaces
the current best when its objective is strictly smaller.
"""

from typing import Sequence

import numpy as np

from ..errors import InvalidDimensionError


def argmin_index(values: Sequence[float]) -> int:
    """
    Index of the smallest value, first occurrence on ties.

    >>> argmin_index([2.0, 1.0, 1.0])
    1
    """
    if len(values) == 0:
        raise InvalidDimensionError("argmin_index requires at least one candidate")

    best = values[0]
    ind = 0
    for i in range(1, len(values)):
        if values[i] < best:
            ind = i
            best = values[i]
    return ind


def argmin_rows(objectives: np.ndarray) -> np.ndarray:
    """
    Row-wise ``argmin_index`` over an ``(n, k)`` matrix of candidate objectives.

    Walks the k columns in order with a strict ``<`` so that the row result is
    identical to calling ``argmin_index`` on each row.
    """
    objectives = np.asarray(objectives, dtype=np.float64)
    if objectives.ndim != 2 or objectives.shape[1] == 0:
        raise InvalidDimensionError(
            f"Candidate objectives must have shape (n, k>0), got {objectives.shape}")

    best = objectives[:, 0].copy()
    ind = np.zeros(objectives.shape[0], dtype=np.intp)
    for j in range(1, objectives.shape[1]):
        better = objectives[:, j] < best
        ind[better] = j
        best[better] = objectives[better, j]
    return ind


def take_rows(candidates: np.ndarray, index: np.ndarray) -> np.ndarray:
    """Pick ``candidates[i, index[i]]`` for every row."""
    return np.take_along_axis(candidates, index[:, None], axis=1)[:, 0]


def quadratic_gap(x1: np.ndarray, x2: np.ndarray, u: np.ndarray) -> np.ndarray:
    """0.5*(x1-u)^2 - 0.5*(x2-u)^2, factored to avoid recomputing both squares."""
    return 0.5 * (x1 + x2 - 2.0 * u) * (x1 - x2)


def binary_scale(u: np.ndarray, lam) -> np.ndarray:
    """
    Per-coordinate power of two ``s`` with ``max(u, lam) / s`` in [1, 2).

    Kernels that are homogeneous in (u, lam) score their candidates on
    ``u / s`` and ``lam / s`` and multiply the winner back by ``s``. Division by a
    power of two is exact, so results are unchanged in the normal range while
    squared terms can no longer underflow into a spurious tie or overflow.
    Coordinates with ``u == lam == 0`` get ``s = 0.5``.
    """
    _, exponent = np.frexp(np.maximum(u, lam))
    return np.ldexp(1.0, exponent - 1)


def choose_first_if_cheaper(x1: np.ndarray, x2: np.ndarray, cost_gap: np.ndarray) -> np.ndarray:
    """``x1`` where f(x1) - f(x2) < 0, ``x2`` otherwise (ties keep ``x2``)."""
    return np.where(cost_gap < 0, x1, x2)


__all__ = [
    'argmin_index', 'argmin_rows', 'take_rows', 'quadratic_gap', 'binary_scale',
    'choose_first_if_cheaper'
]
