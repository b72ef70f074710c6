"""Metropolis acceptance for walks on a fiber.

Invariants
- A candidate with any negative cell is accepted with probability 0 under
  every target.
- Hypergeometric probabilities are computed in log space from lgamma sums, so
  large counts never overflow; the result is clipped to [0, 1].
"""
from __future__ import annotations

import math

import numpy as np

from fiber_mcmc.types import Target


def is_feasible(table: np.ndarray) -> bool:
    return bool(np.all(table >= 0))


def _lgamma_sum(table: np.ndarray) -> float:
    return math.fsum(math.lgamma(float(v) + 1.0) for v in table)


def log_hypergeometric_ratio(current: np.ndarray, candidate: np.ndarray) -> float:
    """log pi(candidate) - log pi(current) for pi(x) ∝ 1 / prod x_k!."""
    return _lgamma_sum(current) - _lgamma_sum(candidate)


def acceptance_probability(current: np.ndarray, candidate: np.ndarray, target: Target) -> float:
    """Probability of moving from current to candidate under the given stationary target."""
    assert candidate.shape == current.shape, "proposal length differs from the table"
    if not is_feasible(candidate):
        return 0.0
    if target is Target.UNIFORM:
        return 1.0
    log_r = log_hypergeometric_ratio(current, candidate)
    if log_r >= 0.0:
        return 1.0
    return math.exp(log_r)


__all__ = [
    "is_feasible",
    "log_hypergeometric_ratio",
    "acceptance_probability",
]
