"""Stats Service HTTP Handler - Supervisor Dashboard API.

Serves aggregate statistics and the filtered test list to the dashboard
front end. Record access goes through a RecordSource built from an explicit
API session; nothing here talks to the record store directly.

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check
- GET /stats - Aggregate statistics snapshot for a time range
- GET /tests - Assessment list filtered by risk, status and source
"""
import asyncio
import logging
import os
from typing import Any, Callable, Dict, Optional

from flask import Flask, request, jsonify

from lifecheck.shared.models import RiskLevel, StatsSnapshot, TimeRange
from lifecheck.shared.records import (
    ApiConfig,
    ApiSession,
    PostgRESTRecordSource,
    RecordSource,
    SourceError,
)
from .config import StatsConfig
from .record_filter import RecordFilter, SourceFilter, StatusFilter
from .risk_classifier import classify_risk
from .snapshot_builder import SnapshotBuilder, SnapshotUnavailableError, StatsQuery

logger = logging.getLogger(__name__)

app = Flask(__name__)


class StatsHandler:
    """Handler for supervisor dashboard endpoints.

    Each call fetches through its own RecordSource from source_factory and
    gets back its own snapshot. The shared builder only tracks generations
    and the snapshot on display.
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        source_factory: Optional[Callable[[], RecordSource]] = None,
    ):
        """Initialize handler with dependencies.

        Args:
            builder: Snapshot builder (injected for testing)
            source_factory: Creates a RecordSource per request (defaults
                to the builder's source)
        """
        self.builder = builder
        self.config = builder.config
        self.source_factory = source_factory or (lambda: builder.source)

    def get_stats(self, time_range: TimeRange) -> StatsSnapshot:
        """Build the snapshot for a time range.

        The snapshot is returned to this caller even if a newer request
        superseded it; it is only put on display while still the latest.

        Raises:
            SnapshotUnavailableError: If assessment records are unavailable
        """
        query = self.builder.begin(time_range)
        snapshot = asyncio.run(self._produce(query))
        self.builder.apply(query, snapshot)
        return snapshot

    def list_tests(
        self,
        time_range: TimeRange,
        record_filter: RecordFilter,
    ) -> Dict[str, Any]:
        """List assessments of a time range matching the filter.

        Raises:
            SourceError: If assessment records could not be fetched
        """
        records = asyncio.run(self._fetch_assessments(time_range))
        matching = record_filter.apply(records)

        logger.info(
            "TESTS_LISTED",
            extra={
                "time_range": time_range.value,
                "total_found": len(records),
                "returned": len(matching),
            }
        )

        return {
            "time_range": time_range.value,
            "total": len(records),
            "completed": sum(1 for r in records if not r.aborted),
            "aborted": sum(1 for r in records if r.aborted),
            "critical": sum(
                1 for r in records
                if classify_risk(r.risk_level) is RiskLevel.KRITISCH
            ),
            "tests": [
                {
                    **r.model_dump(mode="json"),
                    "risk_bucket": classify_risk(r.risk_level).value,
                    "is_anonymous": r.is_anonymous,
                }
                for r in matching
            ],
        }

    async def _produce(self, query: StatsQuery) -> StatsSnapshot:
        source = self.source_factory()
        try:
            return await self.builder.produce(query, source)
        finally:
            await source.aclose()

    async def _fetch_assessments(self, time_range: TimeRange):
        source = self.source_factory()
        try:
            return await source.fetch_assessment_records(time_range)
        finally:
            await source.aclose()


def create_handler() -> StatsHandler:
    """Build a handler wired to the record store from environment config.

    Every request opens its own ApiSession, so no aiohttp session is
    shared between request threads or event loops.
    """
    api_config = ApiConfig.from_env()

    def new_source() -> RecordSource:
        return PostgRESTRecordSource(ApiSession(api_config))

    builder = SnapshotBuilder(source=new_source(), config=StatsConfig.from_env())
    return StatsHandler(builder, source_factory=new_source)


# Global handler instance
_handler: Optional[StatsHandler] = None


def get_handler() -> StatsHandler:
    """Get or create the global handler instance."""
    global _handler
    if _handler is None:
        _handler = create_handler()
    return _handler


def set_handler(handler: StatsHandler) -> None:
    """Set the global handler (for testing)."""
    global _handler
    _handler = handler


def _time_range_arg(handler: StatsHandler) -> TimeRange:
    value = request.args.get("range")
    if not value:
        return handler.config.default_time_range
    return TimeRange(value)


def _risk_arg() -> Optional[RiskLevel]:
    value = request.args.get("risk")
    if not value or value.lower() == "all":
        return None
    level = classify_risk(value)
    if level is RiskLevel.UNBEKANNT and value.strip().lower() != "unbekannt":
        raise ValueError(f"Unknown risk level: {value}")
    return level


# Flask routes
@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy", "service": "stats-service"})


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check endpoint."""
    handler = get_handler()
    return jsonify({
        "status": "ready",
        "service": "stats-service",
        "snapshot_status": handler.builder.status.value,
    })


@app.route("/stats", methods=["GET"])
def stats():
    """Get the aggregate statistics snapshot.

    Query params:
        range: Optional - 7d, 30d, 90d, 1y or all (default from config)
    """
    handler = get_handler()
    try:
        time_range = _time_range_arg(handler)
    except ValueError:
        return jsonify({"error": "range must be one of 7d, 30d, 90d, 1y, all"}), 400

    try:
        snapshot = handler.get_stats(time_range)
    except SnapshotUnavailableError as e:
        logger.warning(
            "STATS_UNAVAILABLE",
            extra={"time_range": time_range.value, "error": str(e)}
        )
        return jsonify({"status": "unavailable", "error": str(e)}), 503

    return jsonify(snapshot.to_dict())


@app.route("/tests", methods=["GET"])
def tests():
    """List assessments for the counselor test view.

    Query params:
        range: Optional - 7d, 30d, 90d, 1y or all (default from config)
        risk: Optional - Niedrig, Mittel, Hoch, Kritisch, Unbekannt or all
        status: Optional - all, completed or aborted
        source: Optional - all, anonymous or assigned
    """
    handler = get_handler()
    try:
        time_range = _time_range_arg(handler)
        record_filter = RecordFilter(
            risk=_risk_arg(),
            status=StatusFilter(request.args.get("status", "all")),
            source=SourceFilter(request.args.get("source", "all")),
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = handler.list_tests(time_range, record_filter)
    except SourceError as e:
        logger.warning(
            "TESTS_UNAVAILABLE",
            extra={"time_range": time_range.value, "error": str(e)}
        )
        return jsonify({"status": "unavailable", "error": str(e)}), 503

    return jsonify(result)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8080"))
    app.run(host="0.0.0.0", port=port)
