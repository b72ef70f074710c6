"""Proposal strategies for lattice walks on a fiber.

All strategies return a candidate table of the same length as the current
one. Candidates may have negative cells; the acceptance step rejects them.
Moves and constraint data are never mutated.

Hit-and-run line
- For a move m and table c, the admissible multipliers t satisfy
  c + t m >= 0. Cells with m > 0 bound t from below by -c/m, cells with
  m < 0 bound it from above; quotients are truncated toward zero, which is
  exact for nonnegative c.
- Both endpoints are re-checked: a negative cell at the lower end sets
  lb = 1, at the upper end ub = -1.
- An unbounded direction, lb > ub, or a range holding no nonzero integer is
  a degenerate line. The proposal then falls back to the unit step t = +1 and
  reports fallback=True; the adaptive strategy does the same. t = 0 is never
  proposed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from fiber_mcmc.acceptance import acceptance_probability
from fiber_mcmc.rng import RandomSource
from fiber_mcmc.types import Strategy, Target


@dataclass
class MoveWeights:
    """Reinforcement weights for weighted move selection (one per move column)."""
    values: np.ndarray
    total: float

    @classmethod
    def uniform(cls, n_moves: int) -> "MoveWeights":
        return cls(values=np.ones(int(n_moves), dtype=np.float64), total=float(n_moves))

    def reinforce(self, index: int) -> None:
        self.values[int(index)] += 1.0
        self.total += 1.0


@dataclass
class Proposal:
    table: np.ndarray
    move_index: Optional[int] = None   # None for fiber-point restarts
    step: Optional[int] = None         # line multiplier t when one was drawn
    fallback: bool = False             # degenerate line, unit step taken
    restart: bool = False


def _trunc_div(num: np.ndarray, den: np.ndarray) -> np.ndarray:
    # integer division rounding toward zero
    q = np.abs(num) // np.abs(den)
    return np.where((num < 0) != (den < 0), -q, q)


def line_range(current: np.ndarray, move: np.ndarray) -> Tuple[Optional[int], Optional[int]]:
    """
    Integer range [lb, ub] of multipliers t keeping current + t * move >= 0.

    None marks a direction no cell bounds (the line is ill-posed there).
    """
    nz = move != 0
    c = current[nz]
    m = move[nz]
    steps = _trunc_div(-c, m)
    lower = steps[m > 0]
    upper = steps[m < 0]
    lb = int(lower.max()) if lower.size else None
    ub = int(upper.min()) if upper.size else None
    if lb is not None and np.any(current + lb * move < 0):
        lb = 1
    if ub is not None and np.any(current + ub * move < 0):
        ub = -1
    return lb, ub


def hit_and_run_step(current: np.ndarray, move: np.ndarray, source: RandomSource) -> Tuple[np.ndarray, int, bool]:
    """Return (candidate, t, fallback) for a uniformly drawn nonzero t on the line."""
    lb, ub = line_range(current, move)
    if lb is None or ub is None or lb > ub or (lb == 0 and ub == 0):
        return current + move, 1, True
    if lb <= 0 <= ub:
        # uniform over the nonzero integers of [lb, ub]
        t = source.integers(lb, ub - 1)
        if t >= 0:
            t += 1
    else:
        t = source.integers(lb, ub)
    return current + t * move, int(t), False


def adaptive_step(current: np.ndarray, move: np.ndarray, source: RandomSource) -> Tuple[np.ndarray, bool]:
    """
    Walk the hit-and-run line with ub - lb local Metropolis steps of ±move.

    Local steps use the hypergeometric acceptance rule; the final local state
    is the candidate. Degenerate lines, a pinned [0, 0] range included, take
    the unit step as in hit_and_run_step. Returns (candidate, fallback).
    """
    lb, ub = line_range(current, move)
    if lb is None or ub is None or lb > ub or (lb == 0 and ub == 0):
        return current + move, True
    w = current.copy()
    for _ in range(ub - lb):
        sign = 1 if source.integers(0, 1) == 1 else -1
        w_prop = w + sign * move
        prob = acceptance_probability(w, w_prop, Target.HYPERGEOMETRIC)
        if source.uniform() < prob:
            w = w_prop
    return w, False


@dataclass
class ProposalEngine:
    """
    Turns the current table into a candidate with one configured strategy.

    moves: (n, n_moves) int64, moves as columns.
    weights: used (and created if missing) by Strategy.WEIGHTED only.
    """
    moves: np.ndarray
    strategy: Strategy
    source: RandomSource
    weights: Optional[MoveWeights] = None
    n_moves: int = field(init=False)

    def __post_init__(self) -> None:
        self.n_moves = int(self.moves.shape[1])
        if self.strategy is Strategy.WEIGHTED and self.weights is None:
            self.weights = MoveWeights.uniform(self.n_moves)

    def _pick(self) -> int:
        if self.strategy is Strategy.WEIGHTED:
            return self.source.categorical(self.weights.values)  # type: ignore[union-attr]
        return self.source.integers(0, self.n_moves - 1)

    def propose(self, current: np.ndarray) -> Proposal:
        idx = self._pick()
        move = self.moves[:, idx]
        if self.strategy is Strategy.HIT_AND_RUN:
            table, t, fallback = hit_and_run_step(current, move, self.source)
            return Proposal(table=table, move_index=idx, step=t, fallback=fallback)
        if self.strategy is Strategy.ADAPTIVE:
            table, fallback = adaptive_step(current, move, self.source)
            return Proposal(table=table, move_index=idx, fallback=fallback)
        # direct and weighted both add the selected move once
        return Proposal(table=current + move, move_index=idx, step=1)

    def accepted(self, proposal: Proposal) -> None:
        """Record an accepted proposal; reinforces its move under weighted selection."""
        if self.strategy is Strategy.WEIGHTED and proposal.move_index is not None:
            self.weights.reinforce(proposal.move_index)  # type: ignore[union-attr]


__all__ = [
    "MoveWeights",
    "Proposal",
    "ProposalEngine",
    "line_range",
    "hit_and_run_step",
    "adaptive_step",
]
