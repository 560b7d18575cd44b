"""Posterior reductions: summaries, per-AE reports, probabilities and diagnostics."""

from .diagnostics import convergence_summary, to_dataset
from .probabilities import ProbabilityDraws, extract_probabilities
from .report import REPORT_COLUMNS, build_report, check_unique_keys, order_for_columns
from .summary import SUMMARY_COLUMNS, SummaryStats, summarize, summarize_posterior

__all__ = [
    "ProbabilityDraws",
    "REPORT_COLUMNS",
    "SUMMARY_COLUMNS",
    "SummaryStats",
    "build_report",
    "check_unique_keys",
    "convergence_summary",
    "extract_probabilities",
    "order_for_columns",
    "summarize",
    "summarize_posterior",
    "to_dataset",
]
