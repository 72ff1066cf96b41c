"""Canonical risk bucket lookup for upstream risk labels.

Upstream labels arrive in whatever casing the assessment build of the day
produced ("niedrig", "HOCH", "Kritisch"). Classification never fails;
unrecognized labels are reported as Unbekannt.
"""
from typing import Any

from lifecheck.shared.models import RiskLevel

_LEVELS_BY_LABEL = {
    level.value.lower(): level
    for level in RiskLevel
    if level is not RiskLevel.UNBEKANNT
}


def classify_risk(raw: Any) -> RiskLevel:
    """Map a raw risk label onto a canonical RiskLevel.

    Args:
        raw: Label as delivered by the record store, possibly None

    Returns:
        Matching level (case-insensitive), UNBEKANNT otherwise
    """
    if not isinstance(raw, str):
        return RiskLevel.UNBEKANNT
    return _LEVELS_BY_LABEL.get(raw.strip().lower(), RiskLevel.UNBEKANNT)
