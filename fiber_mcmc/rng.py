"""Random sources for the lattice samplers.

Invariants
- Every draw made by a sampler goes through one RandomSource (no global RNG).
- Draws are sequential and order-dependent: a fixed seed and configuration
  reproduce the chain byte for byte.
- A source must not be shared between concurrently running chains; use
  spawn_sources() to derive independent streams.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, Union, runtime_checkable

import numpy as np


@runtime_checkable
class RandomSource(Protocol):
    def uniform(self) -> float:
        ...

    def categorical(self, weights: Sequence[float]) -> int:
        ...

    def integers(self, lo: int, hi: int) -> int:
        ...


class GeneratorSource:
    """RandomSource backed by a numpy.random.Generator."""

    def __init__(self, rng: np.random.Generator) -> None:
        if not isinstance(rng, np.random.Generator):
            raise TypeError("rng must be a numpy.random.Generator instance")
        self.rng = rng

    def uniform(self) -> float:
        return float(self.rng.random())

    def categorical(self, weights: Sequence[float]) -> int:
        """
        Draw an index with probability proportional to weights.

        One uniform u is drawn; the result is the first index whose cumulative
        weight reaches u * total.
        """
        w = np.asarray(weights, dtype=np.float64)
        if w.ndim != 1 or w.size == 0:
            raise ValueError("weights must be a non-empty 1-D sequence")
        cum = np.cumsum(w)
        total = float(cum[-1])
        if not np.isfinite(total) or total <= 0.0:
            raise ValueError("weights must have a positive finite sum")
        u = self.uniform()
        idx = int(np.searchsorted(cum, u * total, side="left"))
        return min(idx, w.size - 1)

    def integers(self, lo: int, hi: int) -> int:
        if int(hi) < int(lo):
            raise ValueError(f"empty integer range [{lo}, {hi}]")
        return int(self.rng.integers(int(lo), int(hi), endpoint=True))


RngLike = Union[None, int, np.random.Generator, RandomSource]


def as_source(rng: RngLike = None) -> RandomSource:
    """Normalize None / seed / Generator / RandomSource into a RandomSource."""
    if rng is None or isinstance(rng, (int, np.integer)):
        return GeneratorSource(np.random.default_rng(rng))
    if isinstance(rng, np.random.Generator):
        return GeneratorSource(rng)
    if isinstance(rng, RandomSource):
        return rng
    raise TypeError(
        "rng must be None, an int seed, a numpy.random.Generator or a RandomSource; "
        f"got {type(rng).__name__}"
    )


def spawn_sources(rng: np.random.Generator, k: int) -> List[GeneratorSource]:
    """
    Derive k independent sources for chains that run side by side.

    Seeds are drawn from the parent generator, so the set of streams is itself
    reproducible from the parent seed.
    """
    if int(k) < 1:
        raise ValueError("k must be ≥ 1")
    seeds = rng.integers(0, np.iinfo(np.int64).max, size=int(k), dtype=np.int64)
    return [GeneratorSource(np.random.default_rng(int(s))) for s in seeds]


__all__ = [
    "RandomSource",
    "GeneratorSource",
    "RngLike",
    "as_source",
    "spawn_sources",
]
