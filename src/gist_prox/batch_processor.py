"""
Chunked, data-parallel evaluation of proximal operators.

Every coordinate of a proximal operator is computed independently, so a long
vector can be split into contiguous chunks and evaluated concurrently. NumPy
releases the GIL inside its vectorized kernels, which makes a thread pool
sufficient; no data is copied between processes.

    input vector d
         |
    ┌────▼────┐
    │ chunker │  ← contiguous [start, stop) slices
    └────┬────┘
         |
    ┌────▼────┐    ┌─────────┐    ┌─────────┐
    │Worker 1 │    │Worker 2 │    │Worker 3 │  ← penalty.prox on each slice
    └────┬────┘    └────┬────┘    └────┬────┘
         └──────────────┼──────────────┘
                        ▼
              output written in index order

The assembled result is bit-identical to a single serial call. If any chunk
fails, the remaining chunks are cancelled and the error propagates; no partial
output is returned. Clamped LSP discriminants are counted per chunk and
reported as a single NumericDegeneracyWarning for the whole call.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Tuple
import logging

import numpy as np

from .core.array import ArrayLike
from .core.errors import InvalidDimensionError
from .core.penalties import Penalty
from .core.penalties.implementations import warn_degenerate

logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Evaluate ``penalty.prox`` over fixed-size chunks on a thread pool.

    Args:
        n_jobs: Number of worker threads; 1 evaluates serially
        chunk_size: Number of coordinates per chunk
    """

    def __init__(self, n_jobs: int = 1, chunk_size: int = 65536):
        if n_jobs < 1:
            raise ValueError(f"n_jobs must be at least 1, got {n_jobs}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self.n_jobs = n_jobs
        self.chunk_size = chunk_size

    def chunks(self, n: int) -> List[Tuple[int, int]]:
        return [(start, min(start + self.chunk_size, n)) for start in range(0, n, self.chunk_size)]

    def run(self, penalty: Penalty, d: np.ndarray, t: float = 1.0,
            seed: Optional[ArrayLike] = None) -> np.ndarray:
        """Proximal operator of ``t * penalty`` at ``d``, chunked when worthwhile."""
        n = d.shape[0]
        if seed is not None:
            seed = np.asarray(seed, dtype=np.float64)
            if seed.shape != d.shape:
                raise InvalidDimensionError(
                    f"Seed shape {seed.shape} does not match input shape {d.shape}")

        if self.n_jobs == 1 or n <= self.chunk_size:
            x, degenerate = self._prox_chunk(penalty, d, t, seed, 0, n)
            if degenerate:
                warn_degenerate(degenerate, stacklevel=3)
            return x

        tasks = self.chunks(n)
        logger.debug("Parallel prox: %d coordinates, %d chunks, %d workers",
                     n, len(tasks), self.n_jobs)

        x = np.empty(n, dtype=np.float64)
        degenerate = 0
        with ThreadPoolExecutor(max_workers=self.n_jobs) as executor:
            futures = {
                executor.submit(self._prox_chunk, penalty, d[start:stop], t,
                                None if seed is None else seed[start:stop], start, n): (start, stop)
                for start, stop in tasks
            }
            for future in as_completed(futures):
                start, stop = futures[future]
                try:
                    x[start:stop], count = future.result()
                    degenerate += count
                except Exception as e:
                    logger.error("Error computing prox for chunk [%d, %d): %s", start, stop, e)
                    cancelled_count = 0
                    for remaining_future in futures:
                        if not remaining_future.done():
                            remaining_future.cancel()
                            cancelled_count += 1
                    logger.warning("Cancelled %d remaining chunks due to exception", cancelled_count)
                    raise

        # One warning for the whole call, raised in the caller's thread
        if degenerate:
            warn_degenerate(degenerate, stacklevel=3)
        return x

    @staticmethod
    def _prox_chunk(penalty: Penalty, d_chunk: np.ndarray, t: float,
                    seed_chunk: Optional[np.ndarray], start: int,
                    n_total: int) -> Tuple[np.ndarray, int]:
        """Prox of one chunk and its number of clamped degeneracies."""
        counted = getattr(penalty, "prox_counted", None)
        if counted is not None:
            return counted(d_chunk, t)
        if penalty.is_elementwise:
            return penalty.prox(d_chunk, t), 0
        return penalty.prox(d_chunk, t, seed=seed_chunk, start=start, n_total=n_total), 0
