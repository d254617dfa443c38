"""
Selector-based entry point for the proximal operators.

``compute_proximal(d, n, lam, theta, type)`` validates its arguments, maps the
selector onto one penalty and evaluates that penalty's proximal operator over
the whole vector, returning a freshly allocated result.

Type codes:

    1  Capped L1                      CappedL1Penalty
    2  Log-sum penalty (LSP)          LogSumPenalty
    3  SCAD                           SCADPenalty
    4  Minimax concave penalty (MCP)  MCPPenalty
    5  Indexed soft-threshold (TNN)   IndexedSoftThreshold

Historical callers passed 3 for the indexed soft-threshold and relied on
unknown codes silently meaning Capped L1. Both behaviours are available
through ``ProximalConfig`` (``legacy_type3`` and ``fallback_to_capped_l1``)
and are off by default.
"""

from enum import IntEnum
from typing import Optional, Union
import logging

import numpy as np

from .core.array import ArrayLike, ensure_vector, check_lambda
from .core.errors import InvalidParameterError
from .core.penalties import (
    CappedL1Penalty, LogSumPenalty, SCADPenalty, MCPPenalty, IndexedSoftThreshold, Penalty
)
from .configuration import ProximalConfig
from .batch_processor import BatchProcessor

logger = logging.getLogger(__name__)


class RegularizerType(IntEnum):
    """Non-convex regularizers and their integer type codes"""
    CAPPED_L1 = 1
    LSP = 2
    SCAD = 3
    MCP = 4
    TNN = 5


REGULARIZER_NAMES = {
    "capped_l1": RegularizerType.CAPPED_L1,
    "capl1": RegularizerType.CAPPED_L1,
    "lsp": RegularizerType.LSP,
    "log_sum": RegularizerType.LSP,
    "scad": RegularizerType.SCAD,
    "mcp": RegularizerType.MCP,
    "tnn": RegularizerType.TNN,
}


def resolve_regularizer(selector: Union[RegularizerType, int, str],
                        config: Optional[ProximalConfig] = None) -> RegularizerType:
    """
    Map a type code (integer or integral float), enum member or name onto a
    ``RegularizerType``.

    Raises:
        InvalidParameterError: unknown selector and no Capped L1 fallback configured
    """
    config = config or ProximalConfig()

    reg = None
    code = None
    if isinstance(selector, RegularizerType):
        reg = selector
    elif isinstance(selector, str):
        reg = REGULARIZER_NAMES.get(selector.strip().lower())
    elif isinstance(selector, (int, np.integer)) and not isinstance(selector, bool):
        code = int(selector)
    elif isinstance(selector, (float, np.floating)) and float(selector).is_integer():
        # MATLAB-style callers pass every scalar as a double
        code = int(selector)
    if code in RegularizerType._value2member_map_:
        reg = RegularizerType(code)

    if reg is None:
        if config.fallback_to_capped_l1:
            logger.warning("Unknown regularizer selector %r, falling back to Capped L1", selector)
            return RegularizerType.CAPPED_L1
        raise InvalidParameterError(
            f"Unknown regularizer selector {selector!r}. "
            f"Available: {[int(r) for r in RegularizerType]} or {sorted(REGULARIZER_NAMES)}")

    if (reg is RegularizerType.SCAD and config.legacy_type3
            and not isinstance(selector, (str, RegularizerType))):
        logger.debug("Type code 3 mapped to the legacy indexed soft-threshold")
        return RegularizerType.TNN
    return reg


def build_penalty(reg: RegularizerType, lam: float, theta: float,
                  config: Optional[ProximalConfig] = None) -> Penalty:
    """Instantiate the penalty for ``reg``; parameter domains are checked by the penalty."""
    config = config or ProximalConfig()
    if reg is RegularizerType.CAPPED_L1:
        return CappedL1Penalty(lam=lam, theta=theta)
    elif reg is RegularizerType.LSP:
        return LogSumPenalty(lam=lam, theta=theta, degeneracy_rtol=config.degeneracy_rtol)
    elif reg is RegularizerType.SCAD:
        return SCADPenalty(lam=lam, theta=theta)
    elif reg is RegularizerType.MCP:
        return MCPPenalty(lam=lam, theta=theta)
    elif reg is RegularizerType.TNN:
        return IndexedSoftThreshold(lam=lam, theta=theta)
    raise InvalidParameterError(f"Unsupported regularizer: {reg!r}")


def compute_proximal(d: ArrayLike, n: int, lam: float, theta: float,
                     type: Union[RegularizerType, int, str] = RegularizerType.CAPPED_L1,
                     *, seed: Optional[ArrayLike] = None,
                     config: Optional[ProximalConfig] = None) -> np.ndarray:
    """
    Proximal operator x = argmin_x 0.5*||x - d||² + t*Σᵢ r(xᵢ).

    Args:
        d: Input vector of length n
        n: Declared dimension of d
        lam: Regularization weight λ ≥ 0
        theta: Regularizer shape parameter (domain depends on the regularizer)
        type: Type code 1-5, ``RegularizerType`` member or regularizer name
        seed: Output seed for the indexed soft-threshold (defaults to a copy of d)
        config: Selector policy, step t and parallel execution settings

    Returns:
        New float64 array of length n

    Raises:
        InvalidDimensionError: n ≤ 0 or len(d) != n
        InvalidParameterError: λ < 0, θ outside the regularizer's domain, unknown selector

    Examples:
        >>> compute_proximal([5.0], 1, 1.0, 3.0, 1)
        array([5.])
        >>> compute_proximal([10.0], 1, 1.0, 2.0, RegularizerType.MCP)
        array([10.])
    """
    config = config or ProximalConfig()
    d = ensure_vector(d, n)
    lam = check_lambda(lam)
    reg = resolve_regularizer(type, config)
    penalty = build_penalty(reg, lam, theta, config)

    if seed is not None and reg is not RegularizerType.TNN:
        raise InvalidParameterError(
            f"An output seed only applies to the indexed soft-threshold, not {reg.name}")
    if reg is RegularizerType.TNN:
        penalty.cutoff(d.shape[0])

    processor = BatchProcessor(n_jobs=config.n_jobs, chunk_size=config.chunk_size)
    return processor.run(penalty, d, t=config.step, seed=seed)
