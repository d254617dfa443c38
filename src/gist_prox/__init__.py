from .__about__ import __version__

from .core.errors import (
    ProximalError, InvalidDimensionError, InvalidParameterError, NumericDegeneracyWarning
)

from .core.penalties import (
    CappedL1Penalty, LogSumPenalty, SCADPenalty, MCPPenalty, IndexedSoftThreshold,
    PenaltyProtocol, argmin_index, create_penalty
)

from .configuration import ProximalConfig, load_config

from .dispatch import (
    RegularizerType, compute_proximal, resolve_regularizer, build_penalty
)

from .batch_processor import BatchProcessor

__all__ = [
    # Version
    "__version__",

    # Entry point
    "compute_proximal", "RegularizerType", "resolve_regularizer", "build_penalty",

    # Penalties
    "CappedL1Penalty", "LogSumPenalty", "SCADPenalty", "MCPPenalty", "IndexedSoftThreshold",
    "PenaltyProtocol", "argmin_index", "create_penalty",

    # Errors
    "ProximalError", "InvalidDimensionError", "InvalidParameterError", "NumericDegeneracyWarning",

    # Configuration and execution
    "ProximalConfig", "load_config", "BatchProcessor",
]
