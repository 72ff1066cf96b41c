"""Filtering of assessment records for the counselor test list.

Also applies the configured policy for anonymous submissions before
records are aggregated.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from lifecheck.shared.models import AssessmentRecord, RiskLevel
from .config import AnonymousPolicy
from .risk_classifier import classify_risk


class StatusFilter(Enum):
    ALL = "all"
    COMPLETED = "completed"
    ABORTED = "aborted"


class SourceFilter(Enum):
    ALL = "all"
    ANONYMOUS = "anonymous"
    ASSIGNED = "assigned"


@dataclass(frozen=True)
class RecordFilter:
    """Criteria selected on the test list. Defaults select everything."""
    risk: Optional[RiskLevel] = None
    status: StatusFilter = StatusFilter.ALL
    source: SourceFilter = SourceFilter.ALL

    def matches(self, record: AssessmentRecord) -> bool:
        if self.risk is not None and classify_risk(record.risk_level) is not self.risk:
            return False
        if self.status is StatusFilter.COMPLETED and record.aborted:
            return False
        if self.status is StatusFilter.ABORTED and not record.aborted:
            return False
        if self.source is SourceFilter.ANONYMOUS and not record.is_anonymous:
            return False
        if self.source is SourceFilter.ASSIGNED and record.is_anonymous:
            return False
        return True

    def apply(self, records: Sequence[AssessmentRecord]) -> Tuple[AssessmentRecord, ...]:
        """Return matching records in source order."""
        return tuple(r for r in records if self.matches(r))


def apply_anonymous_policy(
    records: Sequence[AssessmentRecord],
    policy: AnonymousPolicy,
) -> Tuple[AssessmentRecord, ...]:
    """Select the records that enter aggregation under a policy."""
    if policy is AnonymousPolicy.EXCLUDE:
        return tuple(r for r in records if not r.is_anonymous)
    return tuple(records)
