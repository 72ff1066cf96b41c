"""Snapshot orchestration for the supervisor dashboard.

Fetches assessments, clients and counselors concurrently, then runs the
aggregation components over the result to produce one StatsSnapshot.

Every request gets a generation number. A result is only applied if its
generation is still the latest when it arrives, so a slow response for an
old time range can never replace the snapshot of a newer request.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, TypeVar

from lifecheck.shared.models import (
    AssessmentRecord,
    ClientRecord,
    CounselorRecord,
    RiskLevel,
    StatsSnapshot,
    TimeRange,
)
from lifecheck.shared.records import RecordSource
from .abort_funnel import find_abort_hotspots
from .completion import compute_completion_metrics
from .config import AnonymousPolicy, StatsConfig
from .distribution import (
    city_distribution,
    device_distribution,
    risk_distribution,
    source_distribution,
)
from .record_filter import apply_anonymous_policy
from .risk_classifier import classify_risk
from .rollups import build_counselor_rollups

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatsError(Exception):
    """Base exception for stats service errors."""
    pass


class SnapshotUnavailableError(StatsError):
    """Assessment records could not be fetched; no snapshot can be built."""

    def __init__(self, message: str, generation: int):
        super().__init__(message)
        self.generation = generation


class SnapshotStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class StatsQuery:
    """One snapshot request: the window plus the generation it belongs to."""
    time_range: TimeRange
    generation: int


@dataclass(frozen=True)
class FetchedRecords:
    """Materialized result of the three source fetches."""
    assessments: Tuple[AssessmentRecord, ...]
    clients: Tuple[ClientRecord, ...] = ()
    counselors: Tuple[CounselorRecord, ...] = ()


class SnapshotBuilder:
    """Builds and holds the currently displayed StatsSnapshot.

    The generation counter and the current snapshot are owned here and
    touched by nothing else. Updates to them hold a lock, since HTTP
    requests drive one builder from several threads.
    """

    def __init__(
        self,
        source: RecordSource,
        config: Optional[StatsConfig] = None,
    ):
        """Initialize builder with dependencies.

        Args:
            source: Record source scoped to the signed-in caller
            config: Stats configuration
        """
        self.source = source
        self.config = config or StatsConfig()

        self._generation = 0
        self._current: Optional[StatsSnapshot] = None
        self._status = SnapshotStatus.IDLE
        self._lock = threading.Lock()

        logger.info(
            "SNAPSHOT_BUILDER_INITIALIZED",
            extra={
                "anonymous_policy": self.config.anonymous_policy.value,
                "city_limit": self.config.city_limit,
                "hotspot_limit": self.config.hotspot_limit,
            }
        )

    @property
    def latest_generation(self) -> int:
        return self._generation

    @property
    def current(self) -> Optional[StatsSnapshot]:
        """Snapshot currently on display, None before the first success."""
        return self._current

    @property
    def status(self) -> SnapshotStatus:
        return self._status

    def begin(self, time_range: TimeRange) -> StatsQuery:
        """Start a new generation for a time range.

        Any query issued earlier becomes stale from this point on.
        """
        with self._lock:
            self._generation += 1
            self._status = SnapshotStatus.LOADING
            return StatsQuery(time_range=time_range, generation=self._generation)

    def is_current(self, query: StatsQuery) -> bool:
        return query.generation == self._generation

    async def refresh(
        self,
        time_range: Optional[TimeRange] = None,
    ) -> Optional[StatsSnapshot]:
        """Fetch and aggregate a new snapshot for a time range.

        Args:
            time_range: Reporting window (config default if None)

        Returns:
            The new snapshot, or None if a newer request superseded this one

        Raises:
            SnapshotUnavailableError: If assessment records could not be
                fetched and this request is still the latest
        """
        query = self.begin(time_range or self.config.default_time_range)
        return await self.run(query)

    async def run(self, query: StatsQuery) -> Optional[StatsSnapshot]:
        """Fetch, aggregate and apply the snapshot for an issued query."""
        try:
            snapshot = await self.produce(query)
        except SnapshotUnavailableError:
            if not self.is_current(query):
                self._log_stale(query)
                return None
            raise

        if not self.apply(query, snapshot):
            return None
        return snapshot

    async def produce(
        self,
        query: StatsQuery,
        source: Optional[RecordSource] = None,
    ) -> StatsSnapshot:
        """Fetch and aggregate a snapshot that belongs to the caller.

        The result is not put on display; pass it to apply() for that. A
        failed assessment fetch still clears the displayed snapshot when
        the query is the latest one.

        Args:
            query: Query issued by begin()
            source: Record source for this call (the builder's if None)

        Raises:
            SnapshotUnavailableError: If the assessment fetch failed
        """
        try:
            fetched = await self.fetch(query, source)
            return self.build(query, fetched)
        except SnapshotUnavailableError:
            self._settle(query, failed=True)
            raise
        except BaseException:
            self._settle(query, failed=False)
            raise

    def apply(self, query: StatsQuery, snapshot: StatsSnapshot) -> bool:
        """Put a snapshot on display if its query is still the latest.

        Returns:
            False if a newer query superseded this one
        """
        with self._lock:
            if not self.is_current(query):
                self._log_stale(query)
                return False
            self._current = snapshot
            self._status = SnapshotStatus.READY
            return True

    def _settle(self, query: StatsQuery, failed: bool) -> None:
        with self._lock:
            if not self.is_current(query):
                return
            if failed:
                self._current = None
                self._status = SnapshotStatus.UNAVAILABLE
            elif self._status is SnapshotStatus.LOADING:
                self._status = (
                    SnapshotStatus.READY if self._current is not None
                    else SnapshotStatus.IDLE
                )

    async def fetch(
        self,
        query: StatsQuery,
        source: Optional[RecordSource] = None,
    ) -> FetchedRecords:
        """Fetch the three collections concurrently.

        Client and counselor failures degrade to empty collections.

        Raises:
            SnapshotUnavailableError: If the assessment fetch failed
        """
        if source is None:
            source = self.source
        assessments, clients, counselors = await asyncio.gather(
            source.fetch_assessment_records(query.time_range),
            source.fetch_clients(),
            source.fetch_counselors(),
            return_exceptions=True,
        )

        if isinstance(assessments, BaseException):
            if not isinstance(assessments, Exception):
                raise assessments
            logger.error(
                "ASSESSMENT_FETCH_FAILED",
                extra={
                    "generation": query.generation,
                    "time_range": query.time_range.value,
                    "error": str(assessments),
                }
            )
            raise SnapshotUnavailableError(
                f"Assessment records unavailable: {assessments}",
                generation=query.generation,
            ) from assessments

        return FetchedRecords(
            assessments=tuple(assessments),
            clients=self._or_empty("clients", clients, query),
            counselors=self._or_empty("counselors", counselors, query),
        )

    def _or_empty(self, name: str, result, query: StatsQuery) -> tuple:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "SOURCE_FETCH_DEGRADED",
                extra={
                    "collection": name,
                    "generation": query.generation,
                    "error": str(result),
                }
            )
            return ()
        return tuple(result)

    def build(self, query: StatsQuery, fetched: FetchedRecords) -> StatsSnapshot:
        """Aggregate fetched records into a snapshot. Pure, never suspends."""
        policy = self.config.anonymous_policy
        records = apply_anonymous_policy(fetched.assessments, policy)
        levels = [classify_risk(r.risk_level) for r in records]

        total_tests = len(records)
        aborted_tests = sum(1 for r in records if r.aborted)
        completed_tests = total_tests - aborted_tests
        critical_tests = _count(levels, RiskLevel.KRITISCH)
        metrics = compute_completion_metrics(
            total_tests, completed_tests, aborted_tests, critical_tests
        )

        snapshot = StatsSnapshot(
            generation=query.generation,
            time_range=query.time_range,
            total_tests=total_tests,
            completed_tests=completed_tests,
            aborted_tests=aborted_tests,
            critical_tests=critical_tests,
            high_risk_tests=_count(levels, RiskLevel.HOCH),
            anonymous_tests=sum(1 for r in fetched.assessments if r.is_anonymous),
            total_clients=len(fetched.clients),
            total_counselors=len(fetched.counselors),
            active_counselors=sum(1 for c in fetched.counselors if c.is_active),
            completion_rate=metrics.completion_rate,
            abort_rate=metrics.abort_rate,
            critical_share=metrics.critical_share,
            risk_distribution=risk_distribution(levels),
            device_distribution=device_distribution(records),
            city_distribution=city_distribution(records, limit=self.config.city_limit),
            source_distribution=(
                source_distribution(records)
                if policy is AnonymousPolicy.SEPARATE else ()
            ),
            critical_questions=find_abort_hotspots(
                records, limit=self.config.hotspot_limit
            ),
            counselor_rollups=build_counselor_rollups(
                fetched.counselors, fetched.clients, records
            ),
        )

        logger.info(
            "SNAPSHOT_BUILT",
            extra={
                "generation": query.generation,
                "time_range": query.time_range.value,
                "total_tests": total_tests,
                "aborted_tests": aborted_tests,
                "critical_tests": critical_tests,
            }
        )
        return snapshot

    def _log_stale(self, query: StatsQuery) -> None:
        logger.debug(
            "STALE_GENERATION_DISCARDED",
            extra={
                "generation": query.generation,
                "latest_generation": self._generation,
            }
        )


def _count(items: Sequence[T], value: T) -> int:
    return sum(1 for item in items if item is value)
