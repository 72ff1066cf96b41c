"""Risk level domain model for life-balance check results.

Risk levels are computed upstream by the assessment itself; this module
only defines the canonical buckets they are sorted into for reporting.
"""
from enum import Enum


class RiskLevel(Enum):
    """Canonical risk buckets used on the supervisor dashboard.

    Values are the German labels shown to counselors. Anything that does
    not match one of the four named levels lands in UNBEKANNT.
    """
    NIEDRIG = "Niedrig"
    MITTEL = "Mittel"
    HOCH = "Hoch"
    KRITISCH = "Kritisch"
    UNBEKANNT = "Unbekannt"
