"""Tests for the /v1 transcript, company and insight endpoints."""

from datetime import date, datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from backend.common.db import get_session
from backend.common.errors import (
    CompanyNotFound,
    EmptyTranscript,
    InsightNotFound,
    InvalidStatusValue,
    MalformedModelOutput,
    PersistenceFailure,
    UpstreamUnavailable,
)
from backend.common.models import CandidateInsight, TranscriptAnalysis
from backend.common.models_db import Call, Company, Insight
from backend.extraction_service.app.orchestrator import (
    ExtractionFailure,
    ExtractionResult,
    PreviewResult,
)
from backend.insights_api.app.api import get_extractor, get_store
from backend.insights_api.app.main import app
from backend.insights_api.app.schemas import CompanyAnalysisOut

CREATED = datetime(2024, 5, 15, 10, 0, 0)


def _insight(**overrides):
    fields = dict(
        id=7,
        call_id=3,
        pain_point_description="Manual invoicing",
        urgency_level=4,
        mentioned_timeline="next quarter",
        follow_up_date=date(2024, 7, 1),
        status="to_do",
        created_at=CREATED,
    )
    fields.update(overrides)
    return Insight(**fields)


@pytest.fixture
def extractor():
    return Mock(extract=AsyncMock(), preview=AsyncMock())


@pytest.fixture
def store():
    return Mock(update_insight=AsyncMock())


@pytest.fixture
def client(extractor, store):
    """Test client with the database and LLM replaced by test doubles."""

    async def fake_session():
        yield Mock()

    app.dependency_overrides[get_session] = fake_session
    app.dependency_overrides[get_extractor] = lambda: extractor
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/v1/health").json() == {"status": "healthy"}


def test_analyze_transcript_success(client, extractor):
    company = Company(id=1, name="Globex", created_at=CREATED)
    call = Call(
        id=3,
        company_id=1,
        transcript_text="We still invoice by hand.",
        customer_name="Hank Scorpio",
        call_date=CREATED,
        created_at=CREATED,
    )
    extractor.extract.return_value = ExtractionResult(
        company=company,
        call=call,
        insights=[_insight(), _insight(id=8, pain_point_description="Audit readiness", urgency_level=5)],
        company_created=False,
        purged_insights=3,
    )

    response = client.post(
        "/v1/transcripts/analyze",
        json={"transcript": "We still invoice by hand.", "current_date": "2024-05-15"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["company"]["name"] == "Globex"
    assert data["call"]["customer_name"] == "Hank Scorpio"
    assert data["count"] == 2
    assert data["purged_insights_count"] == 3
    assert data["insights"][0]["follow_up_date"] == "2024-07-01"
    extractor.extract.assert_awaited_once_with("We still invoice by hand.", date(2024, 5, 15))


@pytest.mark.parametrize(
    "error, status_code",
    [
        (EmptyTranscript(), 400),
        (UpstreamUnavailable("LLM API error: Bad Gateway", status_code=502), 502),
        (MalformedModelOutput("Failed to parse valid JSON from response content: x", raw_text="x"), 502),
        (PersistenceFailure("Failed to save call to database: timeout"), 500),
    ],
)
def test_analyze_transcript_failure_mapping(client, extractor, error, status_code):
    extractor.extract.return_value = ExtractionFailure.from_error(error)

    response = client.post("/v1/transcripts/analyze", json={"transcript": "hello"})

    assert response.status_code == status_code
    assert response.json() == {"kind": error.kind, "message": error.message}


def test_missing_transcript_field_is_an_empty_transcript(client, extractor):
    extractor.extract.return_value = ExtractionFailure.from_error(EmptyTranscript())

    response = client.post("/v1/transcripts/analyze", json={})

    assert response.status_code == 400
    assert response.json()["kind"] == "EmptyTranscript"
    extractor.extract.assert_awaited_once_with(None, None)


def test_preview_returns_analysis(client, extractor):
    extractor.preview.return_value = PreviewResult(analysis=TranscriptAnalysis(
        company_name="Globex",
        insights=[CandidateInsight(
            pain_point_description="Manual invoicing",
            urgency_level=4,
            follow_up_date=date(2024, 7, 1),
        )],
    ))

    response = client.post("/v1/transcripts/preview", json={"transcript": "hello"})

    assert response.status_code == 200
    data = response.json()
    assert data["company_name"] == "Globex"
    assert data["insights"][0]["follow_up_date"] == "2024-07-01"


def test_list_companies(client):
    companies = [{"id": 1, "name": "Acme", "created_at": CREATED}]
    with patch("backend.insights_api.app.api.list_companies", AsyncMock(return_value=companies)):
        response = client.get("/v1/companies")

    assert response.status_code == 200
    assert response.json()["companies"][0]["name"] == "Acme"


def test_company_analysis_requires_identifier(client):
    response = client.get("/v1/companies/analysis")
    assert response.status_code == 400


def test_company_analysis_by_name(client):
    analysis = CompanyAnalysisOut(company_id=9)
    with patch("backend.insights_api.app.api.get_company_analysis", AsyncMock(return_value=analysis)) as mock_get:
        response = client.get("/v1/companies/analysis", params={"company_name": "acme"})

    assert response.status_code == 200
    assert response.json() == {"company_id": 9, "calls": [], "insights": []}
    assert mock_get.await_args.kwargs == {"company_id": None, "company_name": "acme"}


def test_company_analysis_unknown_company(client):
    with patch(
        "backend.insights_api.app.api.get_company_analysis",
        AsyncMock(side_effect=CompanyNotFound("Company not found: nobody")),
    ):
        response = client.get("/v1/companies/analysis", params={"company_name": "nobody"})

    assert response.status_code == 404
    assert response.json()["kind"] == "CompanyNotFound"


def test_update_insight(client, store):
    store.update_insight.return_value = _insight(status="scheduled_call", follow_up_date=None)

    response = client.patch("/v1/insights/7", json={"status": "scheduled_call", "follow_up_date": None})

    assert response.status_code == 200
    assert response.json()["status"] == "scheduled_call"
    assert response.json()["follow_up_date"] is None
    store.update_insight.assert_awaited_once_with(7, {"status": "scheduled_call", "follow_up_date": None})


def test_update_insight_requires_a_field(client, store):
    response = client.patch("/v1/insights/7", json={})

    assert response.status_code == 400
    store.update_insight.assert_not_called()


def test_update_insight_invalid_status(client, store):
    store.update_insight.side_effect = InvalidStatusValue(
        "Invalid status. Must be one of: to_do, scheduled_call, proceed, sales_loss"
    )

    response = client.patch("/v1/insights/7", json={"status": "done"})

    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidStatusValue"


def test_update_insight_not_found(client, store):
    store.update_insight.side_effect = InsightNotFound("Insight not found: 7")

    response = client.patch("/v1/insights/7", json={"status": "proceed"})

    assert response.status_code == 404


def test_error_body_is_documented(client):
    spec = client.get("/openapi.json").json()

    responses = spec["paths"]["/v1/transcripts/analyze"]["post"]["responses"]
    assert responses["502"]["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/ErrorOut"}
    assert set(spec["components"]["schemas"]["ErrorOut"]["required"]) == {"kind", "message"}
