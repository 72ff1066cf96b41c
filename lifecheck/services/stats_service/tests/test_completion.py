"""Tests for completion metrics and percentage guards."""
import math

from lifecheck.shared.utils import percentage
from lifecheck.services.stats_service.completion import compute_completion_metrics


class TestPercentage:
    """Tests for the shared percentage helper."""

    def test_rounding(self):
        assert percentage(2, 3) == 66.7
        assert percentage(1, 3) == 33.3

    def test_zero_total(self):
        assert percentage(0, 0) == 0
        assert percentage(5, 0) == 0

    def test_bounded(self):
        assert percentage(3, 2) == 100.0


class TestCompletionMetrics:
    """Tests for compute_completion_metrics."""

    def test_rates(self):
        metrics = compute_completion_metrics(
            total_tests=3, completed_tests=1, aborted_tests=2, critical_tests=1
        )

        assert metrics.completion_rate == 33.3
        assert metrics.abort_rate == 66.7
        assert metrics.critical_share == 33.3

    def test_all_zero_when_no_tests(self):
        metrics = compute_completion_metrics(0, 0, 0, 0)

        assert metrics.completion_rate == 0
        assert metrics.abort_rate == 0
        assert metrics.critical_share == 0
        assert not any(math.isnan(v) for v in (
            metrics.completion_rate, metrics.abort_rate, metrics.critical_share
        ))

    def test_all_completed(self):
        metrics = compute_completion_metrics(4, 4, 0, 0)

        assert metrics.completion_rate == 100.0
        assert metrics.abort_rate == 0.0
