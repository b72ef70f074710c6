"""Metropolis chains on the fiber of a contingency table.

Draw order (fixed, so a seed reproduces a chain exactly)
- per outer iteration, when SIS is enabled: one uniform restart draw; a
  draw below the restart probability makes every raw step of that thinning
  block propose a fresh fiber point instead of a move;
- per raw step: the proposal draws (move index or categorical draw, then the
  hit-and-run multiplier or the adaptive sub-walk draws), then one uniform
  transition draw; the candidate replaces the state when draw < probability.

accept_prob is the time-averaged acceptance probability over all iter*thin
raw steps (probability / n_total added at every step, taken or not).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import numpy as np

from fiber_mcmc.acceptance import acceptance_probability
from fiber_mcmc.fiber import FiberSampler
from fiber_mcmc.proposals import MoveWeights, Proposal, ProposalEngine
from fiber_mcmc.rng import RandomSource, RngLike, as_source
from fiber_mcmc.types import ChainConfig, ConfigurationError, Strategy, Target
from fiber_mcmc.utils.arrays import as_constraints, as_moves, as_table, symmetrize_moves
from fiber_mcmc.utils.logging import get_logger, log_metrics

logger = get_logger()


class ChainDriver:
    """
    Runs one chain: iter recorded tables, thin raw steps each.

    constraint_matrix / sufficient_stats are needed only for SIS restarts (and
    for drawing an initial table when run() is given None).
    """

    def __init__(
        self,
        moves,
        config: ChainConfig,
        source: RandomSource,
        constraint_matrix=None,
        sufficient_stats=None,
    ) -> None:
        self.config = config
        self.source = source
        m = np.asarray(moves)
        if m.ndim not in (1, 2):
            raise ConfigurationError("moves must be a 2-D array with moves as columns")
        n = int(m.shape[0])
        self.moves = as_moves(m, n)
        if config.symmetrize:
            self.moves = symmetrize_moves(self.moves)
        self.n = n
        self.A: Optional[np.ndarray] = None
        self.b: Optional[np.ndarray] = None
        if constraint_matrix is not None:
            if sufficient_stats is None:
                raise ConfigurationError("sufficient_stats must accompany constraint_matrix")
            self.A, self.b = as_constraints(constraint_matrix, sufficient_stats, n)
        if config.sis and self.A is None:
            raise ConfigurationError("SIS restarts need constraint_matrix and sufficient_stats")
        self.fiber = FiberSampler(self.A, self.b) if (config.sis and self.A is not None) else None

    def _initial(self, current) -> np.ndarray:
        if current is None:
            if self.A is None:
                raise ConfigurationError("an initial table is required without constraint data")
            sampler = self.fiber or FiberSampler(self.A, self.b)
            return sampler.sample(self.source)
        table = as_table(current, "current")
        if table.size != self.n:
            raise ConfigurationError(f"current has {table.size} cells but moves have {self.n} rows")
        if self.config.sis and self.A is not None and not np.array_equal(self.A @ table, self.b):
            raise ConfigurationError("current does not satisfy constraint_matrix @ current == sufficient_stats")
        return table

    def run(self, current=None) -> Dict[str, Any]:
        cfg = self.config
        state = self._initial(current)
        n_total = cfg.n_total
        steps = np.zeros((self.n, int(cfg.iter)), dtype=np.int64)
        engine = ProposalEngine(
            moves=self.moves,
            strategy=cfg.strategy,
            source=self.source,
            weights=MoveWeights.uniform(self.moves.shape[1]) if cfg.strategy is Strategy.WEIGHTED else None,
        )
        restart_prob = cfg.restart_prob
        accept_prob = 0.0
        accepted = 0
        restarts = 0
        fallbacks = 0
        logger.debug(
            "chain start: cells=%d moves=%d iter=%d thin=%d target=%s strategy=%s sis=%s",
            self.n, self.moves.shape[1], cfg.iter, cfg.thin, cfg.target.value, cfg.strategy.value, cfg.sis,
        )

        for i in range(int(cfg.iter)):
            restart = self.fiber is not None and self.source.uniform() < restart_prob
            if restart:
                restarts += 1
            for _ in range(int(cfg.thin)):
                if restart:
                    proposal = Proposal(table=self.fiber.sample(self.source), restart=True)  # type: ignore[union-attr]
                else:
                    proposal = engine.propose(state)
                    if proposal.fallback:
                        fallbacks += 1
                prob = acceptance_probability(state, proposal.table, cfg.target)
                accept_prob += prob / n_total
                if self.source.uniform() < prob:
                    state = proposal.table
                    accepted += 1
                    engine.accepted(proposal)
            steps[:, i] = state
            if cfg.log_every and (i + 1) % int(cfg.log_every) == 0 and logger.isEnabledFor(logging.INFO):
                done = (i + 1) * int(cfg.thin)
                log_metrics(
                    {
                        "accept_prob": accept_prob * n_total / done,
                        "sis_restarts": restarts,
                        "line_fallbacks": fallbacks,
                    },
                    step=i + 1,
                    logger=logger,
                )

        meta: Dict[str, Any] = {
            "iter": int(cfg.iter),
            "thin": int(cfg.thin),
            "n_total": int(n_total),
            "target": cfg.target.value,
            "strategy": cfg.strategy.value,
            "sis": bool(cfg.sis),
            "sis_restarts": int(restarts),
            "line_fallbacks": int(fallbacks),
            "accepted": int(accepted),
        }
        if engine.weights is not None:
            meta["move_weights"] = engine.weights.values.tolist()
        logger.info(
            "chain done: target=%s strategy=%s accept_prob=%.4f accepted=%d/%d",
            cfg.target.value, cfg.strategy.value, accept_prob, accepted, n_total,
        )
        return {"steps": steps, "accept_prob": float(accept_prob), "meta": meta}


def sample_hypergeometric_chain(
    current,
    moves,
    sufficient_stats=None,
    constraint_matrix=None,
    iter: int = 1000,
    thin: int = 1,
    strategy: Strategy | str = Strategy.DIRECT,
    sis: bool = False,
    rng: RngLike = None,
    *,
    sis_prob: Optional[float] = None,
    log_every: int = 0,
) -> Dict[str, Any]:
    """Metropolis chain targeting the hypergeometric law pi(x) ∝ 1 / prod x_k!."""
    cfg = ChainConfig(
        iter=iter, thin=thin, target=Target.HYPERGEOMETRIC, strategy=strategy,
        sis=sis, sis_prob=sis_prob, log_every=log_every,
    )
    driver = ChainDriver(moves, cfg, as_source(rng), constraint_matrix, sufficient_stats)
    return driver.run(current)


def sample_uniform_chain(
    current,
    moves,
    iter: int = 1000,
    thin: int = 1,
    strategy: Strategy | str = Strategy.DIRECT,
    rng: RngLike = None,
    *,
    sufficient_stats=None,
    constraint_matrix=None,
    sis: bool = False,
    sis_prob: Optional[float] = None,
    log_every: int = 0,
) -> Dict[str, Any]:
    """Chain whose stationary law is uniform on the fiber; every feasible move is taken."""
    cfg = ChainConfig(
        iter=iter, thin=thin, target=Target.UNIFORM, strategy=strategy,
        sis=sis, sis_prob=sis_prob, log_every=log_every,
    )
    driver = ChainDriver(moves, cfg, as_source(rng), constraint_matrix, sufficient_stats)
    return driver.run(current)


def metropolis(
    init,
    moves,
    iter: int = 1000,
    burn: int = 0,
    thin: int = 1,
    target: Target | str = Target.HYPERGEOMETRIC,
    strategy: Strategy | str = Strategy.DIRECT,
    sis: bool = False,
    rng: RngLike = None,
    sufficient_stats=None,
    constraint_matrix=None,
    symmetrize: bool = True,
    sis_prob: Optional[float] = None,
    log_every: int = 0,
) -> Dict[str, Any]:
    """
    User-level sampler: optional move symmetrization, burn-in, then the recorded chain.

    With symmetrize=True the basis becomes [moves, -moves], so a basis given
    with one sign per move still walks both ways. burn raw steps (thin 1) are
    run and discarded; the recorded chain starts from the last burn-in state.
    If init is None the initial table is drawn from the fiber, which requires
    constraint_matrix and sufficient_stats.
    """
    cfg = ChainConfig(
        iter=iter, thin=thin, burn=burn, target=target, strategy=strategy,
        sis=sis, sis_prob=sis_prob, symmetrize=symmetrize, log_every=log_every,
    )
    source = as_source(rng)
    driver = ChainDriver(moves, cfg, source, constraint_matrix, sufficient_stats)
    current = init
    burn_meta: Optional[Dict[str, Any]] = None
    if int(cfg.burn) > 0:
        burn_cfg = ChainConfig(
            iter=int(cfg.burn), thin=1, target=cfg.target, strategy=cfg.strategy,
            sis=cfg.sis, sis_prob=cfg.sis_prob, symmetrize=False,
        )
        burner = ChainDriver(driver.moves, burn_cfg, source, constraint_matrix, sufficient_stats)
        burned = burner.run(current)
        current = burned["steps"][:, -1]
        burn_meta = burned["meta"]
        logger.debug("burn-in done: %d steps, accept_prob=%.4f", cfg.burn, burned["accept_prob"])
    out = driver.run(current)
    out["meta"]["burn"] = int(cfg.burn)
    out["meta"]["symmetrize"] = bool(cfg.symmetrize)
    if burn_meta is not None:
        out["meta"]["burn_meta"] = burn_meta
    out["moves"] = driver.moves
    return out


__all__ = [
    "ChainDriver",
    "sample_hypergeometric_chain",
    "sample_uniform_chain",
    "metropolis",
]
