"""
Penalty function protocol and closed-form proximal operators for the
non-convex regularizers used by GIST-type solvers.
"""

from .penalty_protocol import PenaltyProtocol
from .selection import argmin_index, argmin_rows
from .implementations import (
    CappedL1Penalty, LogSumPenalty, SCADPenalty, MCPPenalty, IndexedSoftThreshold,
    Penalty, create_penalty
)

__all__ = [
    'PenaltyProtocol', 'argmin_index', 'argmin_rows',
    'CappedL1Penalty', 'LogSumPenalty', 'SCADPenalty', 'MCPPenalty', 'IndexedSoftThreshold',
    'Penalty', 'create_penalty'
]
