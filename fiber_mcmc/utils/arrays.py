from __future__ import annotations
from typing import Optional, Tuple
import numpy as np

from fiber_mcmc.types import ConfigurationError


def _integral(arr: np.ndarray, name: str) -> np.ndarray:
    """Cast to int64, rejecting non-integral or non-finite values."""
    if arr.dtype.kind in "iu":
        return arr.astype(np.int64, copy=True)
    if arr.dtype.kind == "b":
        return arr.astype(np.int64)
    if arr.dtype.kind != "f":
        raise ConfigurationError(f"{name} must be numeric")
    if not np.all(np.isfinite(arr)) or not np.all(arr == np.round(arr)):
        raise ConfigurationError(f"{name} must contain integers only")
    return arr.astype(np.int64)


def as_table(x, name: str = "table", nonnegative: bool = True) -> np.ndarray:
    """Validate a cell-count vector and return an owned int64 copy."""
    arr = np.asarray(x)
    if arr.ndim != 1 or arr.size == 0:
        raise ConfigurationError(f"{name} must be a non-empty 1-D vector of counts")
    out = _integral(arr, name)
    if nonnegative and np.any(out < 0):
        raise ConfigurationError(f"{name} must be nonnegative")
    return out


def as_moves(moves, n: int) -> np.ndarray:
    """Validate a move basis with moves as columns, shape (n, n_moves)."""
    arr = np.asarray(moves)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ConfigurationError("moves must be a 2-D array with moves as columns")
    if arr.shape[1] == 0:
        raise ConfigurationError("move basis is empty")
    if arr.shape[0] != n:
        raise ConfigurationError(f"moves have {arr.shape[0]} rows but the table has {n} cells")
    return _integral(arr, "moves")


def symmetrize_moves(moves: np.ndarray) -> np.ndarray:
    """Append the negation of every move: [M, -M]."""
    return np.concatenate([moves, -moves], axis=1)


def as_constraints(A, b, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """Validate a constraint matrix A (r, n) and sufficient statistics b (r,)."""
    A_arr = np.asarray(A)
    if A_arr.ndim == 1:
        A_arr = A_arr.reshape(1, -1)
    if A_arr.ndim != 2 or A_arr.shape[0] == 0:
        raise ConfigurationError("constraint_matrix must be a non-empty 2-D array")
    if A_arr.shape[1] != n:
        raise ConfigurationError(f"constraint_matrix has {A_arr.shape[1]} columns but the table has {n} cells")
    A_int = _integral(A_arr, "constraint_matrix")
    b_arr = np.asarray(b).ravel()
    if b_arr.size != A_int.shape[0]:
        raise ConfigurationError(
            f"sufficient_stats has length {b_arr.size} but constraint_matrix has {A_int.shape[0]} rows"
        )
    return A_int, _integral(b_arr, "sufficient_stats")


def as_expected(expected, n: Optional[int] = None) -> np.ndarray:
    e = np.asarray(expected, dtype=np.float64).ravel()
    if e.size == 0:
        raise ConfigurationError("expected must be non-empty")
    if n is not None and e.size != n:
        raise ConfigurationError(f"expected has {e.size} cells, tables have {n}")
    if not np.all(np.isfinite(e)) or np.any(e < 0):
        raise ConfigurationError("expected must be finite and nonnegative")
    return e
