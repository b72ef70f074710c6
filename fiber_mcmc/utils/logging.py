"""Logging helpers for chain runs.

Invariants
- Idempotent handler installation per logger.
- Metric values must be finite floats; keys are emitted in sorted order.

Public API
- get_logger(name="fiber_mcmc", level=None) -> logging.Logger
- log_metrics(metrics, step=None, logger=None) -> None
- statistics_csv_writer(path, columns) -> Callable[[int, Mapping[str, float]], None]
"""
from __future__ import annotations

import logging
import math
import os
from typing import Callable, Mapping, Optional, Sequence


def get_logger(name: str = "fiber_mcmc", level: Optional[int] = None) -> logging.Logger:
    """
    Return the package logger with a concise formatter.

    Installs at most one StreamHandler (marked _fiber_mcmc_handler). The level
    is left alone unless one is passed; new loggers start at WARNING.
    """
    logger = logging.getLogger(name)
    has_handler = any(getattr(h, "_fiber_mcmc_handler", False) for h in logger.handlers)
    if not has_handler:
        handler = logging.StreamHandler()
        handler._fiber_mcmc_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(name)s %(levelname)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        logger.addHandler(handler)
        logger.propagate = False
        if level is None and logger.level == logging.NOTSET:
            logger.setLevel(logging.WARNING)
    if level is not None:
        logger.setLevel(int(level))
    return logger


def _finite(x: object, name: str) -> float:
    try:
        val = float(x)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise TypeError(f"{name} must be a real number convertible to float") from e
    if not math.isfinite(val):
        raise ValueError(f"{name} must be finite, got {val}")
    return val


def _fmt(x: float) -> str:
    return f"{x:.10g}"


def log_metrics(
    metrics: Mapping[str, float],
    step: int | None = None,
    logger: logging.Logger | None = None,
) -> None:
    """Log "metrics k1=v1 k2=v2 ... step=s" at INFO."""
    if not isinstance(metrics, Mapping) or len(metrics) == 0:
        raise ValueError("metrics must be a non-empty mapping of str->float")
    parts: list[str] = []
    for k in sorted(metrics.keys()):
        if not isinstance(k, str) or not k:
            raise ValueError("metric keys must be non-empty strings")
        parts.append(f"{k}={_fmt(_finite(metrics[k], f'value for {k!r}'))}")
    s_str = ""
    if step is not None:
        s_str = f" step={int(_finite(step, 'step'))}"
    lg = logger if logger is not None else get_logger()
    lg.info("metrics " + " ".join(parts) + s_str)


def statistics_csv_writer(path: str, columns: Sequence[str]) -> Callable[[int, Mapping[str, float]], None]:
    """
    Return a callable writing one row per sampled table: sample,<columns...>.

    The header is written when the file is missing or empty. Statistics may be
    infinite (zero expected cells), so values are written as-is, not validated.
    """
    if not isinstance(path, str) or not path:
        raise ValueError("path must be a non-empty string")
    cols = [str(c) for c in columns]
    if not cols:
        raise ValueError("columns must be non-empty")
    abs_path = os.path.abspath(path)

    def _writer(sample: int, row: Mapping[str, float]) -> None:
        missing = [c for c in cols if c not in row]
        if missing:
            raise ValueError(f"row is missing columns: {missing}")
        header_needed = not os.path.exists(abs_path) or os.path.getsize(abs_path) == 0
        with open(abs_path, "a", encoding="utf-8") as f:
            if header_needed:
                f.write(",".join(["sample"] + cols) + "\n")
            f.write(",".join([str(int(sample))] + [_fmt(float(row[c])) for c in cols]) + "\n")

    return _writer


__all__ = ["get_logger", "log_metrics", "statistics_csv_writer"]
