"""
Closed-form proximal operators for non-convex sparsity penalties.

Every penalty solves, coordinate by coordinate,

    x_i = argmin_x 0.5*(x - d_i)^2 + t*r(x)

by reducing the problem to u = |d_i| >= 0, enumerating the stationary points
of each smooth piece of r, selecting the cheapest one and restoring the sign of
d_i. The operator therefore never flips a sign: sign(x_i) is sign(d_i) or 0.
The only exception is the legacy indexed soft-threshold, which operates on an
output seed rather than on d.

References:
- Gong, P., Zhang, C., Lu, Z., Huang, J., & Ye, J. (2013). A general iterative
  shrinkage and thresholding algorithm for non-convex regularized optimization
  problems. ICML.
- Zhang, T. (2010). Analysis of multi-stage convex relaxation for sparse
  regularization. JMLR. (Capped L1)
- Candès, E., Wakin, M., & Boyd, S. (2008). Enhancing sparsity by reweighted
  l1 minimization. (Log-sum penalty)
- Fan, J., & Li, R. (2001). Variable selection via nonconcave penalized
  likelihood and its oracle properties. (SCAD)
- Zhang, C.-H. (2010). Nearly unbiased variable selection under minimax
  concave penalty. Annals of Statistics. (MCP)
- Hu, Y., Zhang, D., Ye, J., Li, X., & He, X. (2013). Fast and accurate matrix
  completion via truncated nuclear norm regularization. (TNN)
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging
import math
import warnings

import numpy as np

from ..array import ArrayLike, ensure_vector, check_lambda, check_positive, restore_sign
from ..errors import InvalidDimensionError, InvalidParameterError, NumericDegeneracyWarning
from .selection import argmin_rows, take_rows, quadratic_gap, binary_scale, choose_first_if_cheaper

logger = logging.getLogger(__name__)

# Largest magnitude that survives the single-precision narrowing in LSP.
FLOAT32_MAX = float(np.finfo(np.float32).max)


def _proximal_objective(penalty, x: ArrayLike, d: ArrayLike, t: float) -> float:
    x = np.asarray(x, dtype=np.float64)
    d = np.asarray(d, dtype=np.float64)
    return float(0.5 * np.sum((x - d) ** 2) + t * penalty.value(x))


# Kernels: plain functions over validated float64 vectors, scaled parameters.

def _capped_l1_prox(d: np.ndarray, lam: float, theta: float) -> np.ndarray:
    u = np.abs(d)
    x1 = np.maximum(u, theta)                                # flat branch
    x2 = np.minimum(theta, np.maximum(0.0, u - lam))         # soft-threshold branch
    gap = quadratic_gap(x1, x2, u) + lam * (theta - x2)
    return restore_sign(choose_first_if_cheaper(x1, x2, gap), d)


def warn_degenerate(count: int, stacklevel: int = 2) -> None:
    """Report ``count`` clamped LSP discriminants as one NumericDegeneracyWarning."""
    warnings.warn(
        f"LSP discriminant within rounding of zero at {count} coordinate(s); clamped to 0",
        NumericDegeneracyWarning, stacklevel=stacklevel + 1)


def _log_sum_prox(d: np.ndarray, lam: float, theta: float,
                  degeneracy_rtol: float) -> Tuple[np.ndarray, int]:
    # Reduced-precision magnitude: |d_i| is taken after rounding d_i to float32.
    # The resulting magnitude differs from full precision by at most 2**-23
    # relative; the sign is still taken from the full-precision d_i.
    u = np.abs(d.astype(np.float32)).astype(np.float64)
    z = u - theta
    c = lam - u * theta
    v = z * z - 4.0 * c

    tol = degeneracy_rtol * np.finfo(np.float64).eps * (z * z + 4.0 * np.abs(c))
    degenerate = (v < 0) & (v >= -tol)
    count = int(np.count_nonzero(degenerate))
    if count:
        logger.debug("LSP discriminant clamped to zero at %d coordinate(s)", count)
        v = np.where(degenerate, 0.0, v)

    feasible = v >= 0
    sqrtv = np.sqrt(np.where(feasible, v, 0.0))

    candidates = np.empty((d.shape[0], 3))
    candidates[:, 0] = 0.0
    candidates[:, 1] = np.maximum(0.0, 0.5 * (z + sqrtv))
    candidates[:, 2] = np.maximum(0.0, 0.5 * (z - sqrtv))

    objectives = np.empty_like(candidates)
    objectives[:, 0] = 0.5 * u * u
    for j in (1, 2):
        diff = candidates[:, j] - u
        objectives[:, j] = 0.5 * diff * diff + lam * np.log(1.0 + candidates[:, j] / theta)

    magnitude = take_rows(candidates, argmin_rows(objectives))
    magnitude = np.where(feasible, magnitude, 0.0)
    return restore_sign(magnitude, d), count


def _scad_prox(d: np.ndarray, lam: float, theta: float, t: float) -> np.ndarray:
    u = np.abs(d)
    s = binary_scale(u, lam)
    u, lam = u / s, lam / s
    z = theta * lam
    w = lam * lam

    candidates = np.empty((d.shape[0], 3))
    candidates[:, 0] = np.minimum(lam, np.maximum(0.0, u - t * lam))
    candidates[:, 1] = np.minimum(z, np.maximum(lam, (u * (theta - 1.0) - t * z) / (theta - 1.0 - t)))
    candidates[:, 2] = np.maximum(z, u)

    x0, x1, x2 = candidates[:, 0], candidates[:, 1], candidates[:, 2]
    objectives = np.empty_like(candidates)
    objectives[:, 0] = 0.5 * (x0 - u) ** 2 + t * lam * x0
    objectives[:, 1] = 0.5 * (x1 - u) ** 2 + t * 0.5 * (x1 * (-x1 + 2.0 * z) - w) / (theta - 1.0)
    objectives[:, 2] = 0.5 * (x2 - u) ** 2 + t * 0.5 * (theta + 1.0) * w

    return restore_sign(s * take_rows(candidates, argmin_rows(objectives)), d)


def _mcp_prox(d: np.ndarray, lam: float, theta: float) -> np.ndarray:
    u = np.abs(d)
    s = binary_scale(u, lam)
    u, lam = u / s, lam / s
    z = theta * lam
    if theta > 1:
        x1 = np.minimum(z, np.maximum(0.0, theta * (u - lam) / (theta - 1.0)))
    elif theta < 1:
        # Concave on [0, z]: the minimum sits at whichever end is farther from
        # the (maximizing) stationary point v.
        v = theta * (u - lam) / (theta - 1.0)
        x1 = np.where(np.abs(v) > np.abs(v - z), 0.0, z)
    else:
        # Linear on [0, z]
        x1 = np.where(lam > u, 0.0, z)
    x2 = np.maximum(z, u)
    gap = quadratic_gap(x1, x2, u) + x1 * (lam - 0.5 * x1 / theta) - 0.5 * z * lam
    return restore_sign(s * choose_first_if_cheaper(x1, x2, gap), d)


def _indexed_soft_threshold(seed: np.ndarray, lam: float, cutoff: int) -> np.ndarray:
    x = np.array(seed, dtype=np.float64, copy=True)
    tail = x[cutoff:]
    x[cutoff:] = np.where(tail > 0, np.maximum(tail - lam, 0.0), np.minimum(tail + lam, 0.0))
    return x


# Penalties

@dataclass(frozen=True)
class CappedL1Penalty:
    """
    Capped L1 penalty.

    Mathematical Form: r(x) = λ min(|x|, θ), θ > 0, λ ≥ 0

    Proximal Operator: two closed-form candidates on the non-negative half line,
    x1 = max(u, θ) on the flat part and x2 = min(θ, max(0, u - λ)) on the linear
    part; x1 is taken iff f(x1) - f(x2) < 0.
    """
    lam: float = 0.1
    theta: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "lam", check_lambda(self.lam))
        object.__setattr__(self, "theta", check_positive("theta", self.theta))

    def value(self, a: ArrayLike) -> float:
        """Capped L1 value: λ Σᵢ min(|aᵢ|, θ)"""
        a = np.asarray(a, dtype=np.float64)
        return float(self.lam * np.sum(np.minimum(np.abs(a), self.theta)))

    def prox(self, z: ArrayLike, t: float = 1.0) -> np.ndarray:
        z = ensure_vector(z)
        t = check_positive("step t", t)
        return _capped_l1_prox(z, t * self.lam, self.theta)

    def objective(self, x: ArrayLike, d: ArrayLike, t: float = 1.0) -> float:
        return _proximal_objective(self, x, d, t)

    @property
    def is_prox_friendly(self) -> bool:
        return True

    @property
    def is_elementwise(self) -> bool:
        return True


@dataclass(frozen=True)
class LogSumPenalty:
    """
    Log-sum penalty (LSP).

    Mathematical Form: r(x) = λ log(1 + |x|/θ), θ > 0, λ ≥ 0

    Proximal Operator: the stationarity condition on x > 0 is the quadratic
    x² - (u - θ)x + (λ - uθ) = 0. A negative discriminant leaves x = 0 as the
    only candidate; otherwise both (clipped) roots and 0 are scored with the
    true objective and the first cheapest one wins.

    The magnitude |d| is computed in single precision (see ``_log_sum_prox``),
    so the result carries a relative error of at most float32 epsilon.

    Parameters:
        degeneracy_rtol: discriminants in [-rtol·eps·scale, 0) are treated as
            rounding noise and clamped to 0 with a NumericDegeneracyWarning
    """
    lam: float = 0.1
    theta: float = 1.0
    degeneracy_rtol: float = 8.0

    def __post_init__(self):
        object.__setattr__(self, "lam", check_lambda(self.lam))
        object.__setattr__(self, "theta", check_positive("theta", self.theta))
        if not self.degeneracy_rtol >= 0:
            raise InvalidParameterError(
                f"degeneracy_rtol must be non-negative, got {self.degeneracy_rtol}")

    def value(self, a: ArrayLike) -> float:
        """Log-sum value: λ Σᵢ log(1 + |aᵢ|/θ)"""
        a = np.asarray(a, dtype=np.float64)
        return float(self.lam * np.sum(np.log1p(np.abs(a) / self.theta)))

    def prox(self, z: ArrayLike, t: float = 1.0) -> np.ndarray:
        x, count = self.prox_counted(z, t)
        if count:
            warn_degenerate(count, stacklevel=2)
        return x

    def prox_counted(self, z: ArrayLike, t: float = 1.0) -> Tuple[np.ndarray, int]:
        """``prox`` without the warning; also returns the number of clamped discriminants."""
        z = ensure_vector(z)
        t = check_positive("step t", t)
        if np.any(np.abs(z) > FLOAT32_MAX):
            raise InvalidParameterError(
                "LSP input exceeds the single-precision range used for its magnitude")
        return _log_sum_prox(z, t * self.lam, self.theta, self.degeneracy_rtol)

    def objective(self, x: ArrayLike, d: ArrayLike, t: float = 1.0) -> float:
        return _proximal_objective(self, x, d, t)

    @property
    def is_prox_friendly(self) -> bool:
        return True

    @property
    def is_elementwise(self) -> bool:
        return True


@dataclass(frozen=True)
class SCADPenalty:
    """
    Smoothly Clipped Absolute Deviation (SCAD) penalty.

    Research Foundation: Fan & Li (2001)
    Mathematical Form (shape θ > 2):
    - |x| ≤ λ:        r(x) = λ|x|
    - λ < |x| ≤ θλ:   r(x) = (-x² + 2θλ|x| - λ²) / (2(θ - 1))
    - |x| > θλ:       r(x) = (θ + 1)λ² / 2

    Proximal Operator: one candidate per region, each the clipped stationary
    point of that region's quadratic, scored by the true objective. With a
    step t the middle region stays convex only when θ > 1 + t.
    """
    lam: float = 0.1
    theta: float = 3.7  # Fan & Li (2001)

    def __post_init__(self):
        object.__setattr__(self, "lam", check_lambda(self.lam))
        object.__setattr__(self, "theta", float(self.theta))
        if not math.isfinite(self.theta) or self.theta <= 2:
            raise InvalidParameterError(f"SCAD requires theta > 2, got {self.theta}")

    def value(self, a: ArrayLike) -> float:
        """SCAD penalty value with three regions"""
        abs_a = np.abs(np.asarray(a, dtype=np.float64))
        lam, theta = self.lam, self.theta
        penalty = np.where(
            abs_a <= lam,
            lam * abs_a,
            np.where(abs_a <= theta * lam,
                     (-abs_a ** 2 + 2 * theta * lam * abs_a - lam ** 2) / (2 * (theta - 1)),
                     0.5 * (theta + 1) * lam ** 2))
        return float(np.sum(penalty))

    def prox(self, z: ArrayLike, t: float = 1.0) -> np.ndarray:
        z = ensure_vector(z)
        t = check_positive("step t", t)
        if self.theta <= 1.0 + t:
            raise InvalidParameterError(
                f"SCAD prox with step t={t} requires theta > 1 + t, got theta={self.theta}")
        return _scad_prox(z, self.lam, self.theta, t)

    def objective(self, x: ArrayLike, d: ArrayLike, t: float = 1.0) -> float:
        return _proximal_objective(self, x, d, t)

    @property
    def is_prox_friendly(self) -> bool:
        return True

    @property
    def is_elementwise(self) -> bool:
        return True


@dataclass(frozen=True)
class MCPPenalty:
    """
    Minimax Concave Penalty (MCP).

    Research Foundation: Zhang (2010)
    Mathematical Form:
    - |x| ≤ θλ:  r(x) = λ|x| - x²/(2θ)
    - |x| > θλ:  r(x) = θλ²/2

    Proximal Operator: x2 = max(θλ, u) on the flat part and an x1 on [0, θλ]
    whose form depends on the curvature 1 - 1/θ of the objective there
    (θ > 1 convex, θ < 1 concave, θ = 1 linear).

    Scaling by a step t maps (λ, θ) to (tλ, θ/t), which is again an MCP.
    """
    lam: float = 0.1
    theta: float = 3.0

    def __post_init__(self):
        object.__setattr__(self, "lam", check_lambda(self.lam))
        object.__setattr__(self, "theta", check_positive("theta", self.theta))

    def value(self, a: ArrayLike) -> float:
        """MCP value: λ|a| - a²/(2θ) inside θλ, θλ²/2 outside"""
        abs_a = np.abs(np.asarray(a, dtype=np.float64))
        lam, theta = self.lam, self.theta
        penalty = np.where(abs_a <= theta * lam,
                           lam * abs_a - 0.5 * abs_a ** 2 / theta,
                           0.5 * theta * lam ** 2)
        return float(np.sum(penalty))

    def prox(self, z: ArrayLike, t: float = 1.0) -> np.ndarray:
        z = ensure_vector(z)
        t = check_positive("step t", t)
        return _mcp_prox(z, t * self.lam, self.theta / t)

    def objective(self, x: ArrayLike, d: ArrayLike, t: float = 1.0) -> float:
        return _proximal_objective(self, x, d, t)

    @property
    def is_prox_friendly(self) -> bool:
        return True

    @property
    def is_elementwise(self) -> bool:
        return True


@dataclass(frozen=True)
class IndexedSoftThreshold:
    """
    Legacy indexed soft-threshold ("TNN").

    Soft-thresholds every coordinate from index ⌊θ - 1⌋ on and leaves the
    leading ones untouched. Applied to a vector of singular values this is
    the proximal operator of the truncated nuclear norm, which penalizes all
    but the θ - 1 largest singular values:

        r(a) = λ Σ_{i ≥ θ-1} |aᵢ|

    The thresholded values are read from an output *seed*, not from the input
    vector. The seed defaults to a copy of the input; pass ``np.zeros(n)`` to
    reproduce the historical output of a freshly zeroed buffer.

    Parameters:
        lam: threshold λ ≥ 0
        theta: 1 + number of leading coordinates left untouched, 1 ≤ θ ≤ n + 1
    """
    lam: float = 0.1
    theta: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "lam", check_lambda(self.lam))
        object.__setattr__(self, "theta", float(self.theta))
        if not math.isfinite(self.theta) or self.theta - 1 < 0:
            raise InvalidParameterError(
                f"theta - 1 must be a non-negative index bound, got theta={self.theta}")

    def cutoff(self, n: int) -> int:
        """First thresholded index for a vector of length ``n``."""
        if self.theta - 1 > n:
            raise InvalidParameterError(
                f"theta - 1 = {self.theta - 1} exceeds the vector length n={n}")
        return int(self.theta - 1)

    def value(self, a: ArrayLike) -> float:
        """Truncated L1 value: λ Σ_{i ≥ cutoff} |aᵢ|"""
        a = np.asarray(a, dtype=np.float64)
        return float(self.lam * np.sum(np.abs(a[self.cutoff(a.shape[0]):])))

    def prox(self, z: ArrayLike, t: float = 1.0, seed: Optional[ArrayLike] = None,
             start: int = 0, n_total: Optional[int] = None) -> np.ndarray:
        """
        Indexed soft-threshold of ``seed`` (default: ``z``).

        ``start``/``n_total`` describe where ``z`` sits inside a longer vector
        when the operator is evaluated chunk by chunk.
        """
        z = ensure_vector(z)
        t = check_positive("step t", t)
        if seed is None:
            seed = z
        else:
            seed = np.asarray(seed, dtype=np.float64)
            if seed.shape != z.shape:
                raise InvalidDimensionError(
                    f"Seed shape {seed.shape} does not match input shape {z.shape}")
        if n_total is None:
            n_total = start + z.shape[0]
        local_cutoff = min(max(self.cutoff(n_total) - start, 0), z.shape[0])
        return _indexed_soft_threshold(seed, t * self.lam, local_cutoff)

    def objective(self, x: ArrayLike, d: ArrayLike, t: float = 1.0) -> float:
        return _proximal_objective(self, x, d, t)

    @property
    def is_prox_friendly(self) -> bool:
        return True

    @property
    def is_elementwise(self) -> bool:
        return False


Penalty = Union[CappedL1Penalty, LogSumPenalty, SCADPenalty, MCPPenalty, IndexedSoftThreshold]


# Factory function

def create_penalty(penalty_type: str, **kwargs) -> Penalty:
    """
    Factory function for creating penalties by name.

    Args:
        penalty_type: One of 'capped_l1', 'log_sum', 'scad', 'mcp', 'tnn'
        **kwargs: Penalty-specific parameters (lam, theta, ...)

    Examples:
        >>> cap = create_penalty('capped_l1', lam=1.0, theta=3.0)
        >>> lsp = create_penalty('log_sum', lam=0.5, theta=0.1)
        >>> mcp = create_penalty('mcp', lam=1.0, theta=2.0)
    """
    penalty_map = {
        'capped_l1': CappedL1Penalty,
        'log_sum': LogSumPenalty,
        'scad': SCADPenalty,
        'mcp': MCPPenalty,
        'tnn': IndexedSoftThreshold,
    }

    if penalty_type not in penalty_map:
        raise InvalidParameterError(
            f"Unknown penalty type '{penalty_type}'. Available: {list(penalty_map.keys())}")

    return penalty_map[penalty_type](**kwargs)
