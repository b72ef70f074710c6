# Core types for fiber_mcmc: errors, target/strategy selectors and run configuration.
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ConfigurationError(ValueError):
    """Malformed inputs detected before any sampling starts."""
    pass


class FeasibilityError(ConfigurationError):
    """No nonnegative integer table satisfies A x = b (or the search budget ran out)."""
    pass


class Target(Enum):
    """Stationary distribution of the chain on the fiber."""
    HYPERGEOMETRIC = "hypergeometric"
    UNIFORM = "uniform"


class Strategy(Enum):
    """Proposal strategy; exactly one is active per chain invocation."""
    DIRECT = "direct"
    HIT_AND_RUN = "hit_and_run"
    ADAPTIVE = "adaptive"
    WEIGHTED = "weighted"


# Default restart probabilities, per outer iteration.
DEFAULT_SIS_PROB = {
    Target.HYPERGEOMETRIC: 0.01,
    Target.UNIFORM: 0.05,
}

ALLOWED_STRATEGIES = {
    Target.HYPERGEOMETRIC: (Strategy.DIRECT, Strategy.HIT_AND_RUN, Strategy.ADAPTIVE, Strategy.WEIGHTED),
    Target.UNIFORM: (Strategy.DIRECT, Strategy.HIT_AND_RUN),
}


def _coerce_enum(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower().replace("-", "_"))
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        raise ConfigurationError(f"{name} must be one of: {choices}; got {value!r}") from None


@dataclass(frozen=True)
class ChainConfig:
    iter: int
    thin: int = 1
    burn: int = 0                 # raw steps discarded before recording
    target: Union[Target, str] = Target.HYPERGEOMETRIC
    strategy: Union[Strategy, str] = Strategy.DIRECT
    sis: bool = False
    sis_prob: Optional[float] = None  # None = target default
    symmetrize: bool = False      # append -m for every move m
    log_every: int = 0            # outer iterations between progress logs, 0 = off

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "target", _coerce_enum(Target, self.target, "target"))
        object.__setattr__(self, "strategy", _coerce_enum(Strategy, self.strategy, "strategy"))
        if int(self.iter) < 1:
            raise ConfigurationError("iter must be ≥ 1")
        if int(self.thin) < 1:
            raise ConfigurationError("thin must be ≥ 1")
        if int(self.burn) < 0:
            raise ConfigurationError("burn must be ≥ 0")
        if int(self.log_every) < 0:
            raise ConfigurationError("log_every must be ≥ 0")
        if self.strategy not in ALLOWED_STRATEGIES[self.target]:
            raise ConfigurationError(
                f"strategy '{self.strategy.value}' is not available for the {self.target.value} target"
            )
        if self.sis_prob is not None and not (0.0 <= float(self.sis_prob) <= 1.0):
            raise ConfigurationError("sis_prob must be in [0,1]")

    @property
    def n_total(self) -> int:
        return int(self.iter) * int(self.thin)

    @property
    def restart_prob(self) -> float:
        if self.sis_prob is None:
            return DEFAULT_SIS_PROB[self.target]
        return float(self.sis_prob)
