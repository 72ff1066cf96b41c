"""Stats Service configuration."""
import os
from dataclasses import dataclass
from enum import Enum

from lifecheck.shared.models import TimeRange


class AnonymousPolicy(Enum):
    """How submissions without an assigned client enter the statistics.

    INCLUDE: aggregated together with assigned submissions
    EXCLUDE: dropped before aggregation
    SEPARATE: aggregated together, plus an anonymous/assigned breakdown
    """
    INCLUDE = "include"
    EXCLUDE = "exclude"
    SEPARATE = "separate"


@dataclass(frozen=True)
class StatsConfig:
    """Configuration for snapshot aggregation."""

    # Top-N cut-offs for ranked breakdowns
    city_limit: int = 10
    hotspot_limit: int = 5

    anonymous_policy: AnonymousPolicy = AnonymousPolicy.INCLUDE

    # Window used when a request names none
    default_time_range: TimeRange = TimeRange.LAST_30_DAYS

    @classmethod
    def from_env(cls) -> "StatsConfig":
        """Create config from environment variables.

        Environment variables:
            STATS_CITY_LIMIT: Cities listed in the geographic breakdown (default 10)
            STATS_HOTSPOT_LIMIT: Questions listed in the abort funnel (default 5)
            STATS_ANONYMOUS_POLICY: include, exclude or separate (default include)
            STATS_DEFAULT_RANGE: 7d, 30d, 90d, 1y or all (default 30d)
        """
        return cls(
            city_limit=int(os.getenv("STATS_CITY_LIMIT", "10")),
            hotspot_limit=int(os.getenv("STATS_HOTSPOT_LIMIT", "5")),
            anonymous_policy=AnonymousPolicy(
                os.getenv("STATS_ANONYMOUS_POLICY", "include").lower()
            ),
            default_time_range=TimeRange(os.getenv("STATS_DEFAULT_RANGE", "30d")),
        )
