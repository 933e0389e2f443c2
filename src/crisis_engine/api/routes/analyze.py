"""Signal intake routes: POST /analyze/{text,assessment,behavior}.

Each route returns the alert that was raised, or null when the signal stayed
under the no-alert floor. If the alert cannot be stored the route answers
503 with the fallback crisis message so the caller can show it directly.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from crisis_engine.api.dependencies import get_engine
from crisis_engine.engine import CrisisEngine
from crisis_engine.exceptions import AlertPersistenceError
from crisis_engine.model.alert import CrisisAlert, SubjectId
from crisis_engine.model.signals import AnalysisContext, AssessmentInput, BehaviorHistory

router = APIRouter(prefix="/analyze")

FALLBACK_MESSAGE = (
    "We could not record this conversation. If you are in danger or thinking "
    "about ending your life, contact your local emergency number or a crisis "
    "hotline now."
)


class AnalyzeTextRequest(BaseModel):
    subject_id: SubjectId
    text: str
    language: str = "en"
    context: AnalysisContext | None = None
    assessment: AssessmentInput | None = None


class AnalyzeAssessmentRequest(BaseModel):
    subject_id: SubjectId
    total_score: float
    subscales: dict[str, float] = Field(default_factory=dict)


class AnalyzeBehaviorRequest(BaseModel):
    subject_id: SubjectId
    history: BehaviorHistory


class AnalysisResponse(BaseModel):
    alert: CrisisAlert | None


def _unavailable(exc: AlertPersistenceError) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"error": str(exc), "fallback_message": FALLBACK_MESSAGE},
    )


@router.post("/text", response_model=AnalysisResponse)
async def analyze_text(
    body: AnalyzeTextRequest,
    engine: CrisisEngine = Depends(get_engine),
) -> AnalysisResponse:
    try:
        alert = await engine.analyze_text(
            body.subject_id,
            body.text,
            language=body.language,
            context=body.context,
            assessment_input=body.assessment,
        )
    except AlertPersistenceError as exc:
        raise _unavailable(exc) from exc
    return AnalysisResponse(alert=alert)


@router.post("/assessment", response_model=AnalysisResponse)
async def analyze_assessment(
    body: AnalyzeAssessmentRequest,
    engine: CrisisEngine = Depends(get_engine),
) -> AnalysisResponse:
    try:
        alert = await engine.analyze_assessment(body.subject_id, body.total_score, body.subscales)
    except AlertPersistenceError as exc:
        raise _unavailable(exc) from exc
    return AnalysisResponse(alert=alert)


@router.post("/behavior", response_model=AnalysisResponse)
async def analyze_behavior(
    body: AnalyzeBehaviorRequest,
    engine: CrisisEngine = Depends(get_engine),
) -> AnalysisResponse:
    try:
        alert = await engine.analyze_behavior(body.subject_id, body.history)
    except AlertPersistenceError as exc:
        raise _unavailable(exc) from exc
    return AnalysisResponse(alert=alert)
