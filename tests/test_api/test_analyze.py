"""Unit tests for the /analyze routes with a mocked engine."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from crisis_engine.api.routes.analyze import FALLBACK_MESSAGE
from crisis_engine.engine import CrisisEngine
from crisis_engine.exceptions import AlertPersistenceError
from crisis_engine.model.alert import AlertDraft, CrisisAlert


@pytest.fixture
def mock_engine() -> CrisisEngine:
    engine = MagicMock(spec=CrisisEngine)
    engine.analyze_text = AsyncMock(return_value=None)
    engine.analyze_assessment = AsyncMock(return_value=None)
    engine.analyze_behavior = AsyncMock(return_value=None)
    return engine  # type: ignore[return-value]


@pytest.fixture
async def client(mock_engine: CrisisEngine) -> AsyncClient:
    from crisis_engine.api.routes import analyze

    app = FastAPI()
    app.include_router(analyze.router)
    app.state.engine = mock_engine
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def test_text_without_alert_returns_null(client: AsyncClient, mock_engine: CrisisEngine) -> None:
    response = await client.post("/analyze/text", json={"subject_id": "subj-1", "text": "hello"})
    assert response.status_code == 200
    assert response.json() == {"alert": None}
    mock_engine.analyze_text.assert_awaited_once_with(
        "subj-1", "hello", language="en", context=None, assessment_input=None
    )


async def test_text_returns_alert(client: AsyncClient, mock_engine: CrisisEngine) -> None:
    alert = CrisisAlert.from_draft(
        AlertDraft(subject_id="subj-1", severity="critical", trigger_type="keyword", risk_factors=["suicide"])
    )
    mock_engine.analyze_text = AsyncMock(return_value=alert)  # type: ignore[method-assign]
    response = await client.post(
        "/analyze/text",
        json={"subject_id": "subj-1", "text": "suicide", "language": "en", "context": {"prior_score": 9}},
    )
    assert response.status_code == 200
    assert response.json()["alert"]["severity"] == "critical"
    context = mock_engine.analyze_text.await_args.kwargs["context"]
    assert context.prior_score == 9


async def test_text_store_down_returns_fallback(client: AsyncClient, mock_engine: CrisisEngine) -> None:
    mock_engine.analyze_text = AsyncMock(  # type: ignore[method-assign]
        side_effect=AlertPersistenceError("Failed to store critical alert", subject_id="subj-1")
    )
    response = await client.post("/analyze/text", json={"subject_id": "subj-1", "text": "suicide"})
    assert response.status_code == 503
    assert response.json()["detail"]["fallback_message"] == FALLBACK_MESSAGE


@pytest.mark.parametrize("subject_id", ["jane.doe@example.com", "+1 415 555 0100", ""])
async def test_identifying_subject_id_is_rejected(client: AsyncClient, subject_id: str) -> None:
    response = await client.post("/analyze/text", json={"subject_id": subject_id, "text": "hello"})
    assert response.status_code == 422


async def test_assessment_route(client: AsyncClient, mock_engine: CrisisEngine) -> None:
    response = await client.post(
        "/analyze/assessment",
        json={"subject_id": "subj-1", "total_score": 12, "subscales": {"depression": 5}},
    )
    assert response.status_code == 200
    mock_engine.analyze_assessment.assert_awaited_once_with("subj-1", 12, {"depression": 5})


async def test_behavior_route(client: AsyncClient, mock_engine: CrisisEngine) -> None:
    response = await client.post(
        "/analyze/behavior",
        json={
            "subject_id": "subj-1",
            "history": {
                "moods": [{"score": 3, "logged_at": "2024-03-01T10:00:00Z"}],
                "interactions": [{"interaction_type": "chat", "timestamp": "2024-03-01T10:00:00Z"}],
            },
        },
    )
    assert response.status_code == 200
    history = mock_engine.analyze_behavior.await_args.args[1]
    assert len(history.moods) == 1
    assert history.interactions[0].interaction_type == "chat"
