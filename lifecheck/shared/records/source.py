"""Record sources that feed the statistics service.

RecordSource is the read-only contract the stats service depends on. The
PostgREST implementation talks to the practice's record store; tests inject
their own implementations.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from lifecheck.shared.models import (
    AssessmentRecord,
    ClientRecord,
    CounselorRecord,
    TimeRange,
    parse_rows,
)
from .errors import SourcePayloadError
from .session import ApiSession

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class RecordSource(ABC):
    """Read-only access to assessment, client and counselor records.

    Implementations are expected to scope assessment records to the
    requested time range themselves; callers do no date filtering.
    """

    @abstractmethod
    async def fetch_assessment_records(
        self,
        time_range: TimeRange,
    ) -> Sequence[AssessmentRecord]:
        """Fetch assessment records created within the time range."""
        pass

    @abstractmethod
    async def fetch_clients(self) -> Sequence[ClientRecord]:
        """Fetch all clients visible to the caller."""
        pass

    @abstractmethod
    async def fetch_counselors(self) -> Sequence[CounselorRecord]:
        """Fetch all counselors visible to the caller."""
        pass

    async def aclose(self) -> None:
        """Release any held connections."""
        pass


class PostgRESTRecordSource(RecordSource):
    """RecordSource backed by the practice's PostgREST API."""

    ASSESSMENTS_ENDPOINT = "/test_results"
    CLIENTS_ENDPOINT = "/clients"
    COUNSELORS_ENDPOINT = "/counselors"

    def __init__(
        self,
        session: ApiSession,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize source.

        Args:
            session: Authenticated API session for the signed-in caller
            clock: Returns the current time (injected for testing)
        """
        self.session = session
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def assessment_params(self, time_range: TimeRange) -> Dict[str, str]:
        """Build the PostgREST query for assessments in a time range.

        Args:
            time_range: Reporting window

        Returns:
            Query parameters; ALL adds no created_at filter
        """
        params = {
            "order": "created_at.desc",
            "select": "*,client:clients(name,email),counselor:counselors(name,email)",
        }
        cutoff = time_range.cutoff(self._clock())
        if cutoff is not None:
            params["created_at"] = f"gte.{cutoff.isoformat()}"
        return params

    async def fetch_assessment_records(
        self,
        time_range: TimeRange,
    ) -> Tuple[AssessmentRecord, ...]:
        return await self._fetch(
            self.ASSESSMENTS_ENDPOINT,
            self.assessment_params(time_range),
            AssessmentRecord,
        )

    async def fetch_clients(self) -> Tuple[ClientRecord, ...]:
        return await self._fetch(
            self.CLIENTS_ENDPOINT,
            {"order": "created_at.desc"},
            ClientRecord,
        )

    async def fetch_counselors(self) -> Tuple[CounselorRecord, ...]:
        return await self._fetch(
            self.COUNSELORS_ENDPOINT,
            {"order": "created_at.desc"},
            CounselorRecord,
        )

    async def _fetch(
        self,
        endpoint: str,
        params: Dict[str, str],
        model: Type[M],
    ) -> Tuple[M, ...]:
        body: Any = await self.session.get_json(endpoint, params)
        if body is None:
            return ()
        if not isinstance(body, list):
            logger.error(
                "UNEXPECTED_PAYLOAD",
                extra={"endpoint": endpoint, "payload_type": type(body).__name__}
            )
            raise SourcePayloadError(
                f"{endpoint} returned {type(body).__name__}, expected a list"
            )

        records = parse_rows(model, body)
        logger.info(
            "RECORDS_FETCHED",
            extra={"endpoint": endpoint, "count": len(records)}
        )
        return records

    async def aclose(self) -> None:
        await self.session.close()
