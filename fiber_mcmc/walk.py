from __future__ import annotations

import numpy as np

from fiber_mcmc.rng import RngLike, as_source
from fiber_mcmc.types import ConfigurationError
from fiber_mcmc.utils.arrays import as_moves, as_table


def pure_walk(current, moves, iter: int, thin: int = 1, rng: RngLike = None) -> np.ndarray:
    """
    Apply a uniformly chosen move at every raw step, with no accept/reject.

    Tables may turn negative; the walk traces the move graph, it does not
    sample any distribution on the fiber. Returns (n, iter) int64 with one
    column per block of thin steps.
    """
    if int(iter) < 1:
        raise ConfigurationError("iter must be ≥ 1")
    if int(thin) < 1:
        raise ConfigurationError("thin must be ≥ 1")
    state = as_table(current, "current", nonnegative=False)
    basis = as_moves(moves, state.size)
    source = as_source(rng)
    n_moves = basis.shape[1]
    steps = np.zeros((state.size, int(iter)), dtype=np.int64)
    for i in range(int(iter)):
        for _ in range(int(thin)):
            state = state + basis[:, source.integers(0, n_moves - 1)]
        steps[:, i] = state
    return steps


__all__ = ["pure_walk"]
