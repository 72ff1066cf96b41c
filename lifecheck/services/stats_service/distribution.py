"""Grouped breakdowns with percentages for the supervisor dashboard.

One generic routine, aggregate_distribution(), backs every breakdown. Risk
and device breakdowns enumerate all keys in first-seen order; the city
breakdown drops the unknown-city sentinel and is ranked by count and cut
to a top-N list.
"""
from typing import Callable, Dict, Optional, Sequence, Tuple, TypeVar

from lifecheck.shared.models import AssessmentRecord, DistributionStat, RiskLevel
from lifecheck.shared.utils import percentage

T = TypeVar("T")

UNKNOWN_CITY = "Unbekannt"
UNKNOWN_DEVICE = "Unknown"
ANONYMOUS_LABEL = "Anonym"
ASSIGNED_LABEL = "Zugewiesen"


def aggregate_distribution(
    items: Sequence[T],
    key: Callable[[T], str],
    exclude: Optional[Callable[[str], bool]] = None,
    limit: Optional[int] = None,
) -> Tuple[DistributionStat, ...]:
    """Group items by key and derive each group's share of all items.

    Args:
        items: Collection to group
        key: Extracts the group label from an item
        exclude: Labels for which this returns True are left out of the
            result (they still count towards the percentage denominator)
        limit: If given, rank by count descending and keep the first
            ``limit`` groups; ties keep first-seen order

    Returns:
        Tuple of DistributionStat, first-seen order unless ranked
    """
    counts: Dict[str, int] = {}
    for item in items:
        label = key(item)
        counts[label] = counts.get(label, 0) + 1

    total = len(items)
    stats = [
        DistributionStat(label=label, count=count, percentage=percentage(count, total))
        for label, count in counts.items()
        if exclude is None or not exclude(label)
    ]

    if limit is not None:
        # sorted() is stable, so equal counts stay in first-seen order
        stats = sorted(stats, key=lambda s: s.count, reverse=True)[:limit]

    return tuple(stats)


def device_key(record: AssessmentRecord) -> str:
    return record.device_type or UNKNOWN_DEVICE


def city_key(record: AssessmentRecord) -> str:
    return record.city or UNKNOWN_CITY


def risk_distribution(levels: Sequence[RiskLevel]) -> Tuple[DistributionStat, ...]:
    """Breakdown of already-classified risk levels, all buckets seen."""
    return aggregate_distribution(levels, key=lambda level: level.value)


def device_distribution(records: Sequence[AssessmentRecord]) -> Tuple[DistributionStat, ...]:
    """Breakdown by device type, all device types seen."""
    return aggregate_distribution(records, key=device_key)


def city_distribution(
    records: Sequence[AssessmentRecord],
    limit: int = 10,
) -> Tuple[DistributionStat, ...]:
    """Top cities by number of checks, unknown city excluded."""
    return aggregate_distribution(
        records,
        key=city_key,
        exclude=lambda label: label == UNKNOWN_CITY,
        limit=limit,
    )


def source_distribution(records: Sequence[AssessmentRecord]) -> Tuple[DistributionStat, ...]:
    """Breakdown into anonymous and client-assigned submissions."""
    return aggregate_distribution(
        records,
        key=lambda r: ANONYMOUS_LABEL if r.is_anonymous else ASSIGNED_LABEL,
    )
