"""
Penalty function protocol for proximal-gradient optimization.

Defines the interface required of every regularizer r(x) handled by this
package, in the form consumed by GIST-type solvers:

    minimize  l(x) + sum_i r(x_i)

Reference: Gong, Zhang, Lu, Huang & Ye (2013). A General Iterative Shrinkage
and Thresholding Algorithm for Non-convex Regularized Optimization Problems.
"""

from __future__ import annotations
from typing import Protocol, runtime_checkable
import numpy as np


@runtime_checkable
class PenaltyProtocol(Protocol):
    """Protocol for separable penalties with a closed-form proximal operator."""

    def value(self, a: np.ndarray) -> float:
        """Evaluate the penalty sum_i r(a_i)."""
        ...

    def prox(self, z: np.ndarray, t: float = 1.0) -> np.ndarray:
        """Proximal operator: argmin_x (½||x-z||² + t·sum_i r(x_i))."""
        ...

    def objective(self, x: np.ndarray, d: np.ndarray, t: float = 1.0) -> float:
        """Proximal objective ½||x-d||² + t·value(x)."""
        ...

    @property
    def is_prox_friendly(self) -> bool:
        """Whether proximal operator has closed-form solution."""
        ...

    @property
    def is_elementwise(self) -> bool:
        """Whether each output coordinate depends on its own input only."""
        ...
