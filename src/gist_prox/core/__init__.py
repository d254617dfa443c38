"""
Core array validation, error taxonomy and penalty kernels.
"""

from .array import ensure_vector, check_lambda, check_positive, restore_sign
from .errors import (
    ProximalError, InvalidDimensionError, InvalidParameterError, NumericDegeneracyWarning
)

__all__ = [
    'ensure_vector', 'check_lambda', 'check_positive', 'restore_sign',
    'ProximalError', 'InvalidDimensionError', 'InvalidParameterError', 'NumericDegeneracyWarning'
]
