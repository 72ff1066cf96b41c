"""Per-counselor client and test totals for the supervisor's counselor tab."""
from collections import Counter
from typing import Sequence, Tuple

from lifecheck.shared.models import (
    AssessmentRecord,
    ClientRecord,
    CounselorRecord,
    CounselorRollup,
)


def build_counselor_rollups(
    counselors: Sequence[CounselorRecord],
    clients: Sequence[ClientRecord],
    records: Sequence[AssessmentRecord],
) -> Tuple[CounselorRollup, ...]:
    """Count clients and assessments per counselor, in counselor order."""
    clients_per_counselor = Counter(c.counselor_id for c in clients if c.counselor_id)
    tests_per_counselor = Counter(r.counselor_id for r in records if r.counselor_id)

    return tuple(
        CounselorRollup(
            counselor_id=counselor.id,
            name=counselor.name,
            email=counselor.email,
            role=counselor.role,
            license_number=counselor.license_number,
            is_active=counselor.is_active,
            client_count=clients_per_counselor.get(counselor.id, 0),
            test_count=tests_per_counselor.get(counselor.id, 0),
        )
        for counselor in counselors
    )
