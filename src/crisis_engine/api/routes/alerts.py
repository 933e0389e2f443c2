"""Alert routes: GET /alerts/active, GET /alerts/{id}, POST /alerts/{id}/resolve, POST /alerts/manual."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from crisis_engine.api.dependencies import get_alert_store, get_engine
from crisis_engine.api.routes.analyze import FALLBACK_MESSAGE
from crisis_engine.engine import CrisisEngine
from crisis_engine.exceptions import AlertPersistenceError
from crisis_engine.model.alert import CrisisAlert, Severity, SubjectId
from crisis_engine.store.alerts import AlertStore

router = APIRouter()


class ResolveRequest(BaseModel):
    resolved_by: str = Field(min_length=1)


class ManualAlertRequest(BaseModel):
    subject_id: SubjectId
    severity: Severity
    risk_factors: list[str] = Field(default_factory=list)
    excerpt: str | None = None


@router.get("/alerts/active", response_model=list[CrisisAlert])
async def list_active(
    skip: int = Query(0, ge=0),
    limit: int | None = Query(None, ge=1),
    engine: CrisisEngine = Depends(get_engine),
) -> list[CrisisAlert]:
    return await engine.list_active(skip=skip, limit=limit)


@router.get("/alerts/{alert_id}", response_model=CrisisAlert)
async def get_alert(
    alert_id: str,
    alert_store: AlertStore = Depends(get_alert_store),
) -> CrisisAlert:
    alert = await alert_store.get_by_id(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.post("/alerts/{alert_id}/resolve", response_model=dict)
async def resolve_alert(
    alert_id: str,
    body: ResolveRequest,
    engine: CrisisEngine = Depends(get_engine),
) -> dict:  # type: ignore[type-arg]
    resolved = await engine.resolve(alert_id, body.resolved_by)
    if not resolved:
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"resolved": True, "alert_id": alert_id}


@router.post("/alerts/manual", response_model=CrisisAlert, status_code=201)
async def raise_manual_alert(
    body: ManualAlertRequest,
    engine: CrisisEngine = Depends(get_engine),
) -> CrisisAlert:
    try:
        return await engine.raise_manual(
            body.subject_id, body.severity, body.risk_factors, excerpt=body.excerpt
        )
    except AlertPersistenceError as exc:
        raise HTTPException(
            status_code=503,
            detail={"error": str(exc), "fallback_message": FALLBACK_MESSAGE},
        ) from exc
