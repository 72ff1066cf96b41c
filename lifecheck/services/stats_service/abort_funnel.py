"""Abort funnel: which questions most often precede an abandoned check."""
import logging
from typing import Dict, Sequence, Tuple

from lifecheck.shared.models import TOTAL_QUESTIONS, AbortHotspot, AssessmentRecord

logger = logging.getLogger(__name__)


def find_abort_hotspots(
    records: Sequence[AssessmentRecord],
    limit: int = 5,
) -> Tuple[AbortHotspot, ...]:
    """Rank questions by how many aborted checks stopped there.

    Only aborted records that carry a question index are counted. Indices
    outside 1..TOTAL_QUESTIONS are counted like any other.

    Args:
        records: Assessment records of one reporting window
        limit: Maximum hotspots to return

    Returns:
        Hotspots by count descending, ties by ascending question number;
        empty if no aborted record names a question
    """
    counts: Dict[int, int] = {}
    for record in records:
        if record.aborted and record.aborted_at_question is not None:
            question = record.aborted_at_question
            counts[question] = counts.get(question, 0) + 1

    out_of_range = sum(
        count for question, count in counts.items()
        if not 1 <= question <= TOTAL_QUESTIONS
    )
    if out_of_range:
        logger.warning(
            "ABORT_QUESTION_OUT_OF_RANGE",
            extra={"records": out_of_range, "total_questions": TOTAL_QUESTIONS}
        )

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        AbortHotspot(question_number=question, count=count)
        for question, count in ranked[:limit]
    )
