"""Completion, abort and critical-share rates."""
from dataclasses import dataclass

from lifecheck.shared.utils import percentage


@dataclass(frozen=True)
class CompletionMetrics:
    """Rates derived from test counts, in percent with one decimal."""
    completion_rate: float
    abort_rate: float
    critical_share: float


def compute_completion_metrics(
    total_tests: int,
    completed_tests: int,
    aborted_tests: int,
    critical_tests: int,
) -> CompletionMetrics:
    """Derive rates from counts; every rate is 0 when there are no tests."""
    return CompletionMetrics(
        completion_rate=percentage(completed_tests, total_tests),
        abort_rate=percentage(aborted_tests, total_tests),
        critical_share=percentage(critical_tests, total_tests),
    )
