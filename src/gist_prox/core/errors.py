"""
Error taxonomy for proximal operator evaluation.

All hard failures are raised before any output vector is allocated, so a call
either returns the complete result or raises. Numerical degeneracies that can
be resolved safely are reported as warnings instead.
"""


class ProximalError(ValueError):
    """Base class for invalid proximal operator calls."""


class InvalidDimensionError(ProximalError):
    """Vector length is non-positive, inconsistent with ``n`` or not 1-D."""


class InvalidParameterError(ProximalError):
    """Regularization parameter outside the domain of the selected penalty."""


class NumericDegeneracyWarning(RuntimeWarning):
    """A rounding artefact was clamped instead of propagated as NaN."""


__all__ = [
    'ProximalError', 'InvalidDimensionError', 'InvalidParameterError',
    'NumericDegeneracyWarning',
]
