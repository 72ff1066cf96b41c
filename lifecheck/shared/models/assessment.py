"""Assessment, client and counselor records as delivered by the record store.

Rows arrive as loosely-shaped JSON from the PostgREST API. They are parsed
once here into frozen pydantic models; everything downstream works on these
models and never on raw payloads. Malformed optional fields fall back to
defaults instead of failing the whole row.
"""
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

# Number of questions in one life-balance check
TOTAL_QUESTIONS = 40

_TRUE_STRINGS = frozenset({"true", "t", "1", "yes", "y"})

M = TypeVar("M", bound=BaseModel)


class TimeRange(Enum):
    """Reporting window selectable on the supervisor dashboard."""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    LAST_YEAR = "1y"
    ALL = "all"

    def cutoff(self, now: datetime) -> Optional[datetime]:
        """Earliest creation time inside the window, None for ALL."""
        days = {
            TimeRange.LAST_7_DAYS: 7,
            TimeRange.LAST_30_DAYS: 30,
            TimeRange.LAST_90_DAYS: 90,
            TimeRange.LAST_YEAR: 365,
        }.get(self)
        if days is None:
            return None
        return now - timedelta(days=days)


def _clean_str(value: Any) -> Optional[str]:
    """Return a non-blank string or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def _coerce_int(value: Any) -> Optional[int]:
    """Best-effort integer conversion, None when not integral."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    return None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class TrackingData(_Record):
    """Where and on what device a check was taken. All fields optional."""
    city: Optional[str] = None
    country: Optional[str] = None
    device_type: Optional[str] = None

    @field_validator("city", "country", "device_type", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return _clean_str(value)


class AssessmentRecord(_Record):
    """One completed or abandoned life-balance check.

    Risk level, primary concern and addiction direction are computed by the
    assessment itself and are carried here unmodified. Accepts both the flat
    field names used in code and the nested PostgREST row layout
    (``professional_scores``, ``tracking_data.geo_data``).
    """
    id: str = ""
    created_at: Optional[datetime] = None
    aborted: bool = False
    aborted_at_question: Optional[int] = None
    completed_questions: int = 0
    risk_level: Optional[str] = None
    primary_concern: Optional[str] = None
    category_scores: Dict[str, float] = {}
    addiction_direction: Optional[Dict[str, Any]] = None
    tracking_data: Optional[TrackingData] = None
    counselor_id: Optional[str] = None
    client_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_row(cls, data: Any) -> Any:
        """Lift nested PostgREST columns into the flat record fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        scores = data.get("professional_scores")
        if not isinstance(scores, dict):
            scores = {}

        if _clean_str(data.get("risk_level")) is None:
            data["risk_level"] = scores.get("riskLevel")
        if _clean_str(data.get("primary_concern")) is None:
            data["primary_concern"] = scores.get("primaryConcern")
        if "category_scores" not in data:
            data["category_scores"] = scores
        if "addiction_direction" not in data:
            data["addiction_direction"] = scores.get("addictionDirection")

        tracking = data.get("tracking_data")
        if isinstance(tracking, TrackingData):
            return data
        if not isinstance(tracking, dict):
            tracking = {}
        geo = tracking.get("geo_data")
        if not isinstance(geo, dict):
            geo = {}

        flattened = {
            "city": geo.get("city") or tracking.get("city") or data.get("city"),
            "country": geo.get("country") or tracking.get("country") or data.get("country"),
            "device_type": tracking.get("device_type") or data.get("device_type"),
        }
        if any(_clean_str(v) for v in flattened.values()):
            data["tracking_data"] = flattened
        else:
            data["tracking_data"] = None
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Optional[datetime]:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @field_validator("aborted", mode="before")
    @classmethod
    def _parse_aborted(cls, value: Any) -> bool:
        return _coerce_bool(value)

    @field_validator("aborted_at_question", mode="before")
    @classmethod
    def _parse_question(cls, value: Any) -> Optional[int]:
        return _coerce_int(value)

    @field_validator("completed_questions", mode="before")
    @classmethod
    def _parse_completed(cls, value: Any) -> int:
        parsed = _coerce_int(value)
        return parsed if parsed is not None else 0

    @field_validator("risk_level", "primary_concern", "counselor_id", "client_id", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_str(value)

    @field_validator("category_scores", mode="before")
    @classmethod
    def _numeric_scores(cls, value: Any) -> Dict[str, float]:
        if not isinstance(value, dict):
            return {}
        return {
            str(name): float(score)
            for name, score in value.items()
            if isinstance(score, (int, float)) and not isinstance(score, bool)
        }

    @field_validator("addiction_direction", mode="before")
    @classmethod
    def _opaque_mapping(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @property
    def is_anonymous(self) -> bool:
        """Submitted without being assigned to a client."""
        return self.client_id is None

    @property
    def city(self) -> Optional[str]:
        return self.tracking_data.city if self.tracking_data else None

    @property
    def device_type(self) -> Optional[str]:
        return self.tracking_data.device_type if self.tracking_data else None


class ClientRecord(_Record):
    """A counseling client as stored in the practice's client list."""
    id: str = ""
    name: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None
    counselor_id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("name", "email", "status", "counselor_id", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_str(value)


class CounselorRecord(_Record):
    """A counselor or supervisor account."""
    id: str = ""
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    license_number: Optional[str] = None
    is_active: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("name", "email", "role", "license_number", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_str(value)

    @field_validator("is_active", mode="before")
    @classmethod
    def _parse_active(cls, value: Any) -> bool:
        return _coerce_bool(value)


def parse_rows(model: Type[M], rows: Iterable[Any]) -> Tuple[M, ...]:
    """Parse raw rows into records, skipping rows that are not objects.

    Args:
        model: Record model to parse into
        rows: Raw JSON rows from the record store

    Returns:
        Tuple of parsed records in source order
    """
    parsed: List[M] = []
    skipped = 0
    for row in rows:
        if not isinstance(row, dict):
            skipped += 1
            continue
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            skipped += 1
            logger.warning(
                "RECORD_PARSE_FAILED",
                extra={"model": model.__name__, "error": str(e)}
            )

    if skipped:
        logger.warning(
            "RECORDS_SKIPPED",
            extra={"model": model.__name__, "skipped": skipped, "parsed": len(parsed)}
        )
    return tuple(parsed)
