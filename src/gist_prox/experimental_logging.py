"""
Structured JSON logging for proximal operator runs.

Provides machine-readable event records for the command line front end, one
JSON object per line (stdout unless another stream is given):

    {"ts": 1640995200.0, "event": "prox_start", "regularizer": "mcp", "n": 1000}
"""

import json, sys, time
import numpy as np


def _to_json(value):
    # numpy scalars and arrays reach the log from the CLI report fields
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return str(value)


def log(event: str, stream=None, **fields):
    """
    Log a structured JSON event with timestamp and arbitrary fields.

    Args:
        event: Event name (e.g., "prox_start", "prox_done", "error")
        stream: Text stream to write to; defaults to the current sys.stdout
        **fields: Additional key-value pairs; numpy values are converted to
            plain JSON numbers and lists

    Example:
        >>> log("prox_start", regularizer="mcp", n=np.int64(1000))
        {"ts": 1640995200.0, "event": "prox_start", "regularizer": "mcp", "n": 1000}
    """
    out = sys.stdout if stream is None else stream
    rec = {"ts": time.time(), "event": event}
    rec.update(fields)
    out.write(json.dumps(rec, default=_to_json) + "\n")
    out.flush()
