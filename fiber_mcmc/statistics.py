"""Discrepancy statistics between sampled tables and an expected table.

Every function takes one table (1-D) or a 2-D array of tables and returns a
float64 array with one value per table. In a 2-D array whose first axis has
the length of the expected table, tables are columns (the chain layout
returned by the samplers); otherwise, when the second axis matches, tables
are rows. Square inputs are read as columns.

Zero conventions (never raised)
- pearson: cells with e = 0 and x = 0 contribute 0; e = 0 < x gives +inf.
- likelihood_ratio: cells with x = 0 contribute 0; e = 0 < x gives +inf.
- neyman: cells with x = 0 contribute 0.
- cressie_read: cells with x = 0 contribute 0; e = 0 < x contributes the
  limit of x((x/e)^lam - 1): +inf for lam > 0 and -x for lam < 0.
"""
from __future__ import annotations

import math
from typing import Dict

import numpy as np

from fiber_mcmc.types import ConfigurationError
from fiber_mcmc.utils.arrays import as_expected


def _columns(tables, n: int) -> np.ndarray:
    x = np.asarray(tables, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise ConfigurationError("tables must be a 1-D table or a 2-D array of tables")
    if x.shape[0] == n:
        return x
    if x.shape[1] == n:
        return x.T
    raise ConfigurationError(f"tables of shape {x.shape} do not match {n} cells")


def _prepare(tables, expected):
    e = as_expected(expected)
    x = _columns(tables, e.size)
    return x, e[:, None]


def pearson(tables, expected) -> np.ndarray:
    """Pearson X^2 = sum (x - e)^2 / e."""
    x, e = _prepare(tables, expected)
    num = (x - e) ** 2
    with np.errstate(divide="ignore", invalid="ignore"):
        terms = np.where(e > 0, num / np.where(e > 0, e, 1.0), np.where(num > 0, np.inf, 0.0))
    return terms.sum(axis=0)


def likelihood_ratio(tables, expected) -> np.ndarray:
    """Deviance G^2 = 2 sum x log(x / e), with 0 log(0/e) = 0."""
    x, e = _prepare(tables, expected)
    pos = x > 0
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(pos, x / e, 1.0)
        terms = np.where(pos, x * np.log(ratio), 0.0)
    return 2.0 * terms.sum(axis=0)


def neyman(tables, expected) -> np.ndarray:
    """Neyman's modified X^2 = sum (x - e)^2 / x, with empty cells skipped."""
    x, e = _prepare(tables, expected)
    pos = x > 0
    terms = np.where(pos, (x - e) ** 2 / np.where(pos, x, 1.0), 0.0)
    return terms.sum(axis=0)


def cressie_read(tables, expected, lam: float) -> np.ndarray:
    """
    Cressie-Read power divergence 2/(lam(lam+1)) sum x((x/e)^lam - 1).

    lam = 1 is Pearson's X^2 (when sum x = sum e), lam = -1/2 Freeman-Tukey,
    lam = 2/3 the Cressie-Read recommendation. The limits lam = 0 (G^2) and
    lam = -1 are not members of this closed form.
    """
    lam = float(lam)
    if lam == 0.0 or lam == -1.0:
        raise ConfigurationError("cressie_read is undefined at lambda 0 and -1; use likelihood_ratio for lambda 0")
    x, e = _prepare(tables, expected)
    pos = x > 0
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        ratio = np.where(pos, x / e, 1.0)
        terms = np.where(pos, x * (np.power(ratio, lam) - 1.0), 0.0)
    return (2.0 / (lam * (lam + 1.0))) * terms.sum(axis=0)


def freeman_tukey(tables, expected) -> np.ndarray:
    return cressie_read(tables, expected, -0.5)


def log_unnormalized_probability(tables) -> np.ndarray:
    """-sum lgamma(x + 1) per table: the log multinomial weight up to a constant."""
    x = np.asarray(tables, dtype=np.float64)
    if x.ndim == 1:
        x = x.reshape(-1, 1)
    if x.ndim != 2:
        raise ConfigurationError("tables must be a 1-D table or a 2-D array of tables (columns)")
    if np.any(x < 0):
        raise ConfigurationError("tables must be nonnegative")
    lg = np.vectorize(math.lgamma, otypes=[np.float64])
    return -lg(x + 1.0).sum(axis=0)


def unnormalized_probability(tables) -> np.ndarray:
    """
    exp(-sum lgamma(x + 1)) per table (tables as columns, or a single table).

    Proportional to the hypergeometric probability of each table on its fiber.
    Underflows to 0 for large counts; compare log_unnormalized_probability
    values in that regime.
    """
    return np.exp(log_unnormalized_probability(tables))


def compute_statistics(tables, expected) -> Dict[str, np.ndarray]:
    """
    Full battery keyed as in the exact-test summary:
    PR (log unnormalized probability), X2, G2, FT, CR (lam = 2/3), NM.
    """
    e = as_expected(expected)
    x = _columns(tables, e.size)
    return {
        "PR": log_unnormalized_probability(x),
        "X2": pearson(x, e),
        "G2": likelihood_ratio(x, e),
        "FT": freeman_tukey(x, e),
        "CR": cressie_read(x, e, 2.0 / 3.0),
        "NM": neyman(x, e),
    }


STATISTIC_NAMES = ("PR", "X2", "G2", "FT", "CR", "NM")

__all__ = [
    "pearson",
    "likelihood_ratio",
    "neyman",
    "cressie_read",
    "freeman_tukey",
    "unnormalized_probability",
    "log_unnormalized_probability",
    "compute_statistics",
    "STATISTIC_NAMES",
]
