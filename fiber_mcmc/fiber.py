"""Single-point fiber sampler.

Builds one nonnegative integer table x with A x = b by filling cells in
order. Before cell k is filled its admissible values are narrowed to
[lo_k, hi_k]:

- hi_k is the largest count the remaining sufficient statistics allow,
  min over rows r with A[r, k] > 0 of residual_r // A[r, k];
- every cell j has such a bound u_j, so the cells after k can pay at most
  cap_r = sum_{j > k} A[r, j] u_j towards row r, and cell k must cover the
  rest: lo_k = max over rows of ceil((residual_r - cap_r) / A[r, k]).

A row still owed more than the later cells can pay with no help from cell k
makes the range empty, as does lo_k > hi_k. A cell that alone settles a row
gets lo_k == hi_k, its forced value. Values are tried starting at a uniformly
drawn offset and cycling through the range, one counter per cell.

The search backtracks depth first, so it is complete: it returns a point
whenever the fiber is non-empty and raises FeasibilityError otherwise (or when
the node budget runs out). For two-way margins filled row by row the ranges
are exact and no backtracking happens. Points are not uniform on the fiber;
restarts only need some feasible table.

Requirements on A: nonnegative entries and no all-zero column (a zero column
leaves its cell unconstrained and the fiber infinite).
"""
from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from fiber_mcmc.rng import RandomSource, RngLike, as_source
from fiber_mcmc.types import ConfigurationError, FeasibilityError
from fiber_mcmc.utils.arrays import as_constraints
from fiber_mcmc.utils.logging import get_logger

logger = get_logger()

DEFAULT_MAX_NODES = 200_000

_NO_BOUND = np.iinfo(np.int64).max


class FiberSampler:
    def __init__(self, constraint_matrix, sufficient_stats, max_nodes: int = DEFAULT_MAX_NODES) -> None:
        A = np.asarray(constraint_matrix)
        if A.ndim == 1:
            A = A.reshape(1, -1)
        if A.ndim != 2 or A.shape[1] == 0:
            raise ConfigurationError("constraint_matrix must be a 2-D array with at least one column")
        self.A, self.b = as_constraints(A, sufficient_stats, A.shape[1])
        if np.any(self.A < 0):
            raise ConfigurationError("constraint_matrix must be nonnegative")
        zero_cols = np.flatnonzero(~np.any(self.A > 0, axis=0))
        if zero_cols.size:
            raise ConfigurationError(f"cells {zero_cols.tolist()} are not constrained by any row; the fiber is unbounded")
        if int(max_nodes) < 1:
            raise ConfigurationError("max_nodes must be ≥ 1")
        self.max_nodes = int(max_nodes)
        self.n = int(self.A.shape[1])
        self._pos = self.A > 0
        # divisor with zeros replaced, so residual // A never divides by zero
        self._div = np.where(self._pos, self.A, 1)

    def _upper(self, k: int, residual: np.ndarray) -> np.ndarray:
        """Per-cell count bounds u_j for cells k..n-1 under the given residual."""
        q = residual[:, None] // self._div[:, k:]
        return np.where(self._pos[:, k:], q, _NO_BOUND).min(axis=0)

    def _range(self, k: int, residual: np.ndarray) -> Optional[Tuple[int, int]]:
        """Admissible values [lo, hi] for cell k, or None when there are none."""
        upper = self._upper(k, residual)
        cap = self.A[:, k + 1:] @ upper[1:]
        need = residual - cap
        rows = self._pos[:, k]
        if np.any(need[~rows] > 0):
            return None
        col = self.A[rows, k]
        lo = max(0, int(np.max(-(-need[rows] // col))))
        hi = int(upper[0])
        if lo > hi:
            return None
        return lo, hi

    def sample(self, source: RandomSource) -> np.ndarray:
        """Return one table in the fiber, or raise FeasibilityError."""
        if np.any(self.b < 0):
            raise FeasibilityError("sufficient statistics are negative; the fiber is empty")
        x = np.zeros(self.n, dtype=np.int64)
        residual = self.b.copy()
        # cursor[k]: [lo, span, offset, tried] for cell k (None = not expanded yet)
        cursor: List[Optional[List[int]]] = [None] * self.n
        k = 0
        nodes = 0
        while True:
            if cursor[k] is None:
                rng = self._range(k, residual)
                if rng is None:
                    cursor[k] = [0, 0, 0, 0]
                else:
                    lo, hi = rng
                    cursor[k] = [lo, hi - lo + 1, source.integers(lo, hi) - lo, 0]
            lo, span, offset, tried = cursor[k]  # type: ignore[misc]
            if tried >= span:
                # exhausted cell k: step back and undo the previous cell
                cursor[k] = None
                k -= 1
                if k < 0:
                    raise FeasibilityError("no nonnegative integer table satisfies A x = b")
                residual += self.A[:, k] * x[k]
                x[k] = 0
                continue
            cursor[k][3] = tried + 1  # type: ignore[index]
            nodes += 1
            if nodes > self.max_nodes:
                raise FeasibilityError(f"fiber search exceeded {self.max_nodes} nodes without a feasible table")
            v = lo + (offset + tried) % span
            x[k] = v
            residual -= self.A[:, k] * v
            if k == self.n - 1:
                # the last range is empty unless v settles every row exactly
                logger.debug("fiber point found after %d nodes", nodes)
                return x.copy()
            k += 1


def sample_fiber_point(
    constraint_matrix,
    sufficient_stats,
    rng: RngLike = None,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> np.ndarray:
    """Draw one nonnegative integer table x with constraint_matrix @ x == sufficient_stats."""
    return FiberSampler(constraint_matrix, sufficient_stats, max_nodes=max_nodes).sample(as_source(rng))


__all__ = ["FiberSampler", "sample_fiber_point", "DEFAULT_MAX_NODES"]
