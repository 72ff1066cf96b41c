"""Shared domain models for lifecheck."""
from .risk import RiskLevel
from .assessment import (
    TOTAL_QUESTIONS,
    TimeRange,
    TrackingData,
    AssessmentRecord,
    ClientRecord,
    CounselorRecord,
    parse_rows,
)
from .stats import (
    DistributionStat,
    AbortHotspot,
    CounselorRollup,
    StatsSnapshot,
)

__all__ = [
    "RiskLevel",
    "TOTAL_QUESTIONS",
    "TimeRange",
    "TrackingData",
    "AssessmentRecord",
    "ClientRecord",
    "CounselorRecord",
    "parse_rows",
    "DistributionStat",
    "AbortHotspot",
    "CounselorRollup",
    "StatsSnapshot",
]
