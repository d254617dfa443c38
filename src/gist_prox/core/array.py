"""
Array coercion and boundary validation for proximal operator inputs.

Accepts anything NumPy can turn into a 1-D float64 vector (lists, tuples,
arrays of other dtypes) and checks the preconditions shared by every penalty.
"""

from typing import Any, Optional
import math
import numbers

import numpy as np

from .errors import InvalidDimensionError, InvalidParameterError

ArrayLike = Any  # Union[np.ndarray, list, tuple, ...]


def ensure_vector(d: ArrayLike, n: Optional[int] = None) -> np.ndarray:
    """
    Convert ``d`` to a read-only-safe 1-D float64 array and validate its length.

    Args:
        d: Input vector
        n: Declared dimension; checked against ``len(d)`` when given

    Returns:
        1-D float64 array (a view of ``d`` when no conversion was needed)

    Raises:
        InvalidDimensionError: ``d`` is not 1-D, empty, or ``len(d) != n``
        InvalidParameterError: ``d`` contains NaN or infinite entries
    """
    arr = np.asarray(d, dtype=np.float64)
    if arr.ndim != 1:
        raise InvalidDimensionError(f"Input must be a 1-D vector, got shape {arr.shape}")

    if n is not None:
        if isinstance(n, bool) or not isinstance(n, numbers.Real) or not math.isfinite(n):
            raise InvalidDimensionError(f"Dimension n must be a finite integer, got {n!r}")
        if int(n) != n:
            raise InvalidDimensionError(f"Dimension n must be an integer, got {n!r}")
        if n <= 0:
            raise InvalidDimensionError(f"Dimension n must be positive, got {n}")
        if arr.shape[0] != n:
            raise InvalidDimensionError(
                f"Input length {arr.shape[0]} does not match declared dimension n={n}")

    if arr.shape[0] == 0:
        raise InvalidDimensionError("Input vector must not be empty")

    if not np.all(np.isfinite(arr)):
        raise InvalidParameterError("Input vector contains NaN or infinite entries")

    return arr


def check_lambda(lam: float) -> float:
    """Regularization weight must be finite and non-negative."""
    lam = float(lam)
    if not math.isfinite(lam) or lam < 0:
        raise InvalidParameterError(f"lambda must be finite and non-negative, got {lam}")
    return lam


def check_positive(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidParameterError(f"{name} must be finite and positive, got {value}")
    return value


def restore_sign(magnitude: np.ndarray, d: np.ndarray) -> np.ndarray:
    """Apply the sign of ``d`` to a non-negative magnitude; ``d == 0`` always maps to 0."""
    return np.where(d > 0, magnitude, np.where(d < 0, -magnitude, 0.0))


__all__ = ['ArrayLike', 'ensure_vector', 'check_lambda', 'check_positive', 'restore_sign']
