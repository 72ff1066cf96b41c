"""Stats Service: aggregate statistics for the supervisor dashboard.

Turns the assessment records of a reporting window into one immutable
StatsSnapshot:
- Risk level distribution over canonical buckets
- Completion, abort and critical-case rates
- Device and top-city breakdowns
- Abort funnel naming the questions most often abandoned
- Per-counselor client and test totals

Endpoints:
- GET /health - Health check
- GET /ready - Readiness check
- GET /stats - Aggregate statistics snapshot
- GET /tests - Filtered assessment list
"""

from .config import AnonymousPolicy, StatsConfig
from .risk_classifier import classify_risk
from .distribution import (
    aggregate_distribution,
    risk_distribution,
    device_distribution,
    city_distribution,
    source_distribution,
    UNKNOWN_CITY,
    UNKNOWN_DEVICE,
)
from .abort_funnel import find_abort_hotspots
from .completion import CompletionMetrics, compute_completion_metrics
from .record_filter import (
    RecordFilter,
    StatusFilter,
    SourceFilter,
    apply_anonymous_policy,
)
from .rollups import build_counselor_rollups
from .snapshot_builder import (
    SnapshotBuilder,
    SnapshotStatus,
    StatsQuery,
    FetchedRecords,
    StatsError,
    SnapshotUnavailableError,
)
from .handler import (
    StatsHandler,
    app,
)

__all__ = [
    "AnonymousPolicy",
    "StatsConfig",
    "classify_risk",
    "aggregate_distribution",
    "risk_distribution",
    "device_distribution",
    "city_distribution",
    "source_distribution",
    "UNKNOWN_CITY",
    "UNKNOWN_DEVICE",
    "find_abort_hotspots",
    "CompletionMetrics",
    "compute_completion_metrics",
    "RecordFilter",
    "StatusFilter",
    "SourceFilter",
    "apply_anonymous_policy",
    "build_counselor_rollups",
    "SnapshotBuilder",
    "SnapshotStatus",
    "StatsQuery",
    "FetchedRecords",
    "StatsError",
    "SnapshotUnavailableError",
    "StatsHandler",
    "app",
]
