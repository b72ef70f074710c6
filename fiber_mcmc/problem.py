from __future__ import annotations

"""
Fiber problem loader.

Inputs (problem: dict):
- table: List[int], observed cell counts (required)
- moves: List[List[int]], one move per entry, each of length n (required)
- constraint_matrix: List[List[int]], rows of A, each of length n (optional)
- sufficient_stats: List[int] (optional; defaults to A @ table when A is given)
- expected: List[float] (optional; the exact test falls back to the chain mean)
- name: str (optional)

Outputs:
- FiberProblem with numpy arrays; moves are stored as columns, shape (n, n_moves).

Validation raises ConfigurationError; nothing is sampled here.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from fiber_mcmc.types import ConfigurationError
from fiber_mcmc.utils.arrays import as_constraints, as_expected, as_moves, as_table


@dataclass(frozen=True)
class FiberProblem:
    table: np.ndarray
    moves: np.ndarray
    constraint_matrix: Optional[np.ndarray] = None
    sufficient_stats: Optional[np.ndarray] = None
    expected: Optional[np.ndarray] = None
    name: str = "problem"

    @property
    def n_cells(self) -> int:
        return int(self.table.size)


def load_problem(problem: Dict[str, Any]) -> FiberProblem:
    if not isinstance(problem, dict):
        raise ConfigurationError("problem must be a dict")
    for key in ("table", "moves"):
        if key not in problem:
            raise ConfigurationError(f"problem is missing required key '{key}'")
    table = as_table(problem["table"], "table")
    n = table.size
    raw_moves = np.asarray(problem["moves"])
    if raw_moves.ndim != 2:
        raise ConfigurationError("moves must be a list of move vectors")
    moves = as_moves(raw_moves.T, n)

    A = b = None
    if problem.get("constraint_matrix") is not None:
        A_raw = np.asarray(problem["constraint_matrix"])
        b_raw = problem.get("sufficient_stats")
        if b_raw is None:
            if A_raw.ndim != 2 or A_raw.shape[1] != n:
                raise ConfigurationError("constraint_matrix must be a list of rows of length n")
            b_raw = A_raw @ table
        A, b = as_constraints(A_raw, b_raw, n)
    elif problem.get("sufficient_stats") is not None:
        raise ConfigurationError("sufficient_stats given without constraint_matrix")

    expected = None
    if problem.get("expected") is not None:
        expected = as_expected(problem["expected"], n)

    return FiberProblem(
        table=table,
        moves=moves,
        constraint_matrix=A,
        sufficient_stats=b,
        expected=expected,
        name=str(problem.get("name", "problem")),
    )


def load_problem_from_json(path: str) -> FiberProblem:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return load_problem(data)


__all__ = ["FiberProblem", "load_problem", "load_problem_from_json"]
