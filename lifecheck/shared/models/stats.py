"""Aggregate statistics handed to the supervisor dashboard.

All types here are produced by the stats service and never persisted.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .assessment import TimeRange


@dataclass(frozen=True)
class DistributionStat:
    """One bucket of a grouped breakdown."""
    label: str
    count: int
    percentage: float   # 0-100, one decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class AbortHotspot:
    """A question at which assessments were abandoned."""
    question_number: int
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"question_number": self.question_number, "count": self.count}


@dataclass(frozen=True)
class CounselorRollup:
    """Per-counselor client and test totals."""
    counselor_id: str
    name: Optional[str]
    email: Optional[str]
    role: Optional[str]
    license_number: Optional[str]
    is_active: bool
    client_count: int
    test_count: int

    @property
    def is_supervisor(self) -> bool:
        return (self.role or "").lower() == "supervisor"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "counselor_id": self.counselor_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_supervisor": self.is_supervisor,
            "license_number": self.license_number,
            "is_active": self.is_active,
            "client_count": self.client_count,
            "test_count": self.test_count,
        }


@dataclass(frozen=True)
class StatsSnapshot:
    """Immutable result of one aggregation run.

    Built fresh for every run and owned by whoever requested it. The
    generation ties it to the request that produced it.
    """
    generation: int
    time_range: TimeRange
    total_tests: int
    completed_tests: int
    aborted_tests: int
    critical_tests: int
    high_risk_tests: int
    anonymous_tests: int
    total_clients: int
    total_counselors: int
    active_counselors: int
    completion_rate: float
    abort_rate: float
    critical_share: float
    risk_distribution: Tuple[DistributionStat, ...] = ()
    device_distribution: Tuple[DistributionStat, ...] = ()
    city_distribution: Tuple[DistributionStat, ...] = ()
    source_distribution: Tuple[DistributionStat, ...] = ()
    critical_questions: Tuple[AbortHotspot, ...] = ()
    counselor_rollups: Tuple[CounselorRollup, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Render as a JSON-ready dictionary."""
        return {
            "generation": self.generation,
            "time_range": self.time_range.value,
            "total_tests": self.total_tests,
            "completed_tests": self.completed_tests,
            "aborted_tests": self.aborted_tests,
            "critical_tests": self.critical_tests,
            "high_risk_tests": self.high_risk_tests,
            "anonymous_tests": self.anonymous_tests,
            "total_clients": self.total_clients,
            "total_counselors": self.total_counselors,
            "active_counselors": self.active_counselors,
            "completion_rate": self.completion_rate,
            "abort_rate": self.abort_rate,
            "critical_share": self.critical_share,
            "risk_distribution": [s.to_dict() for s in self.risk_distribution],
            "device_distribution": [s.to_dict() for s in self.device_distribution],
            "city_distribution": [s.to_dict() for s in self.city_distribution],
            "source_distribution": [s.to_dict() for s in self.source_distribution],
            "critical_questions": [q.to_dict() for q in self.critical_questions],
            "counselors": [c.to_dict() for c in self.counselor_rollups],
        }
