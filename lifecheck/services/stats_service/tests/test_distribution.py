"""Tests for grouped breakdowns."""
from lifecheck.shared.models import AssessmentRecord, RiskLevel
from lifecheck.services.stats_service.distribution import (
    UNKNOWN_CITY,
    aggregate_distribution,
    city_distribution,
    device_distribution,
    risk_distribution,
    source_distribution,
)


def make_record(city=None, device=None, client_id=None):
    return AssessmentRecord.model_validate({
        "tracking_data": {"geo_data": {"city": city}, "device_type": device},
        "client_id": client_id,
    })


class TestAggregateDistribution:
    """Tests for the generic grouping routine."""

    def test_empty_input(self):
        assert aggregate_distribution([], key=str) == ()

    def test_insertion_order_kept(self):
        stats = aggregate_distribution(["b", "a", "b", "c"], key=lambda x: x)

        assert [s.label for s in stats] == ["b", "a", "c"]
        assert [s.count for s in stats] == [2, 1, 1]

    def test_percentages_rounded_to_one_decimal(self):
        stats = aggregate_distribution(["x", "y", "y"], key=lambda x: x)

        assert [s.percentage for s in stats] == [33.3, 66.7]

    def test_excluded_labels_still_in_denominator(self):
        stats = aggregate_distribution(
            ["keep", "drop", "drop", "drop"],
            key=lambda x: x,
            exclude=lambda label: label == "drop",
        )

        assert len(stats) == 1
        assert stats[0].label == "keep"
        assert stats[0].percentage == 25.0

    def test_limit_ranks_descending(self):
        items = ["a", "b", "b", "c", "c", "c"]
        stats = aggregate_distribution(items, key=lambda x: x, limit=2)

        assert [s.label for s in stats] == ["c", "b"]

    def test_limit_ties_keep_first_seen_order(self):
        items = ["late", "early", "late", "early", "solo"]
        stats = aggregate_distribution(items, key=lambda x: x, limit=10)

        assert [s.label for s in stats] == ["late", "early", "solo"]


class TestRiskDistribution:
    """Tests for the risk level breakdown."""

    def test_full_enumeration_in_first_seen_order(self):
        levels = [RiskLevel.HOCH, RiskLevel.NIEDRIG, RiskLevel.HOCH, RiskLevel.UNBEKANNT]
        stats = risk_distribution(levels)

        assert [(s.label, s.count) for s in stats] == [
            ("Hoch", 2), ("Niedrig", 1), ("Unbekannt", 1),
        ]
        assert sum(s.count for s in stats) == len(levels)


class TestDeviceDistribution:
    """Tests for the device breakdown."""

    def test_missing_device_is_unknown(self):
        records = [make_record(device="mobile"), make_record(), make_record(device="mobile")]
        stats = device_distribution(records)

        assert [(s.label, s.count) for s in stats] == [("mobile", 2), ("Unknown", 1)]

    def test_device_labels_are_raw(self):
        stats = device_distribution([make_record(device="Mobile"), make_record(device="mobile")])

        assert [s.label for s in stats] == ["Mobile", "mobile"]


class TestCityDistribution:
    """Tests for the ranked city breakdown."""

    def test_unknown_city_excluded(self):
        records = [make_record(), make_record(), make_record(city="Wien")]
        stats = city_distribution(records)

        assert [s.label for s in stats] == ["Wien"]
        assert all(s.label != UNKNOWN_CITY for s in stats)
        assert stats[0].percentage == 33.3

    def test_literal_unbekannt_city_excluded(self):
        stats = city_distribution([make_record(city="Unbekannt"), make_record(city="Graz")])

        assert [s.label for s in stats] == ["Graz"]

    def test_top_ten_by_count(self):
        records = []
        for i in range(12):
            records.extend(make_record(city=f"City{i}") for _ in range(i + 1))
        stats = city_distribution(records)

        assert len(stats) == 10
        assert stats[0].label == "City11"
        assert stats[-1].label == "City2"
        counts = [s.count for s in stats]
        assert counts == sorted(counts, reverse=True)

    def test_ties_broken_by_first_seen(self):
        records = [make_record(city=c) for c in ["Linz", "Graz", "Graz", "Linz", "Wien"]]
        stats = city_distribution(records, limit=2)

        assert [s.label for s in stats] == ["Linz", "Graz"]


class TestSourceDistribution:
    """Tests for the anonymous/assigned breakdown."""

    def test_labels(self):
        records = [make_record(), make_record(client_id="cl-1"), make_record()]
        stats = source_distribution(records)

        assert [(s.label, s.count) for s in stats] == [("Anonym", 2), ("Zugewiesen", 1)]
