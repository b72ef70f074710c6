"""
fiber_mcmc: Markov chain Monte Carlo on fibers of contingency tables.

Exposes:
- sample_hypergeometric_chain, sample_uniform_chain, metropolis, pure_walk
- sample_fiber_point / FiberSampler for SIS restarts and initialization
- the discrepancy statistics and the exact-test summary
- ChainConfig, Target, Strategy and the error types
"""
from __future__ import annotations

from .types import (
    ConfigurationError,
    FeasibilityError,
    Target,
    Strategy,
    ChainConfig,
)
from .rng import RandomSource, GeneratorSource, as_source, spawn_sources
from .acceptance import acceptance_probability, is_feasible, log_hypergeometric_ratio
from .proposals import (
    MoveWeights,
    Proposal,
    ProposalEngine,
    line_range,
    hit_and_run_step,
    adaptive_step,
)
from .fiber import FiberSampler, sample_fiber_point
from .chain import ChainDriver, sample_hypergeometric_chain, sample_uniform_chain, metropolis
from .walk import pure_walk
from .statistics import (
    pearson,
    likelihood_ratio,
    neyman,
    cressie_read,
    freeman_tukey,
    unnormalized_probability,
    log_unnormalized_probability,
    compute_statistics,
)
from .exact_test import ExactTestResult, exact_test, run_exact_test, mcmc_expected, pearson_residuals
from .problem import FiberProblem, load_problem, load_problem_from_json

__all__ = [
    # Errors and configuration
    "ConfigurationError",
    "FeasibilityError",
    "Target",
    "Strategy",
    "ChainConfig",
    # Randomness
    "RandomSource",
    "GeneratorSource",
    "as_source",
    "spawn_sources",
    # Acceptance and proposals
    "acceptance_probability",
    "is_feasible",
    "log_hypergeometric_ratio",
    "MoveWeights",
    "Proposal",
    "ProposalEngine",
    "line_range",
    "hit_and_run_step",
    "adaptive_step",
    # Fiber points
    "FiberSampler",
    "sample_fiber_point",
    # Drivers
    "ChainDriver",
    "sample_hypergeometric_chain",
    "sample_uniform_chain",
    "metropolis",
    "pure_walk",
    # Statistics and exact test
    "pearson",
    "likelihood_ratio",
    "neyman",
    "cressie_read",
    "freeman_tukey",
    "unnormalized_probability",
    "log_unnormalized_probability",
    "compute_statistics",
    "ExactTestResult",
    "exact_test",
    "run_exact_test",
    "mcmc_expected",
    "pearson_residuals",
    # Problems
    "FiberProblem",
    "load_problem",
    "load_problem_from_json",
]
