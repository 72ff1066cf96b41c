"""Tests for the PostgREST record source."""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from lifecheck.shared.models import AssessmentRecord, ClientRecord, CounselorRecord, TimeRange
from lifecheck.shared.records import (
    ApiSession,
    PostgRESTRecordSource,
    SourcePayloadError,
    SourceUnavailableError,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session():
    """ApiSession double with a scripted get_json."""
    mock = MagicMock(spec=ApiSession)
    mock.get_json = AsyncMock(return_value=[])
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def source(session):
    return PostgRESTRecordSource(session, clock=lambda: NOW)


class TestAssessmentQuery:
    """Tests for PostgREST query construction."""

    def test_time_range_becomes_created_at_filter(self, source):
        params = source.assessment_params(TimeRange.LAST_7_DAYS)

        assert params["created_at"] == "gte.2026-10-11T12:00:00+00:00"
        assert params["order"] == "created_at.desc"

    def test_all_has_no_date_filter(self, source):
        params = source.assessment_params(TimeRange.ALL)

        assert "created_at" not in params

    def test_embeds_client_and_counselor(self, source):
        params = source.assessment_params(TimeRange.ALL)

        assert "client:clients(name,email)" in params["select"]
        assert "counselor:counselors(name,email)" in params["select"]


@pytest.mark.asyncio
class TestFetching:
    """Tests for fetching and parsing collections."""

    async def test_fetch_assessments_parses_rows(self, source, session):
        session.get_json.return_value = [
            {"id": "1", "risk_level": "Hoch", "aborted": False},
            {"id": "2", "aborted": True, "aborted_at_question": 4},
        ]

        records = await source.fetch_assessment_records(TimeRange.LAST_30_DAYS)

        assert all(isinstance(r, AssessmentRecord) for r in records)
        assert [r.id for r in records] == ["1", "2"]
        endpoint, params = session.get_json.call_args.args
        assert endpoint == "/test_results"
        assert params["created_at"].startswith("gte.2026-09-18")

    async def test_fetch_clients(self, source, session):
        session.get_json.return_value = [{"id": "cl-1", "counselor_id": "c-1"}]

        clients = await source.fetch_clients()

        assert isinstance(clients[0], ClientRecord)
        assert session.get_json.call_args.args[0] == "/clients"

    async def test_fetch_counselors(self, source, session):
        session.get_json.return_value = [{"id": "c-1", "is_active": True}]

        counselors = await source.fetch_counselors()

        assert isinstance(counselors[0], CounselorRecord)
        assert counselors[0].is_active is True

    async def test_empty_body_is_empty_collection(self, source, session):
        session.get_json.return_value = None

        assert await source.fetch_clients() == ()

    async def test_non_list_payload_rejected(self, source, session):
        session.get_json.return_value = {"message": "JWT expired"}

        with pytest.raises(SourcePayloadError):
            await source.fetch_assessment_records(TimeRange.ALL)

    async def test_transport_error_propagates(self, source, session):
        session.get_json.side_effect = SourceUnavailableError("down", status=503)

        with pytest.raises(SourceUnavailableError):
            await source.fetch_counselors()

    async def test_aclose_closes_session(self, source, session):
        await source.aclose()

        session.close.assert_awaited_once()
