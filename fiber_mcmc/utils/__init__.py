from .logging import get_logger, log_metrics, statistics_csv_writer
from .arrays import as_table, as_moves, as_constraints, as_expected, symmetrize_moves

__all__ = [
    "get_logger",
    "log_metrics",
    "statistics_csv_writer",
    "as_table",
    "as_moves",
    "as_constraints",
    "as_expected",
    "symmetrize_moves",
]
