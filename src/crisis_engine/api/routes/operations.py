"""Operator routes: POST /escalations/sweep, GET /reports/crisis."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query

from crisis_engine.api.dependencies import get_aggregator, get_scheduler
from crisis_engine.escalation import EscalationScheduler
from crisis_engine.model.snapshot import CrisisReport, EscalationSweep
from crisis_engine.reporting import ReportingAggregator

router = APIRouter()


@router.post("/escalations/sweep", response_model=EscalationSweep)
async def run_sweep(
    scheduler: EscalationScheduler = Depends(get_scheduler),
) -> EscalationSweep:
    result = await scheduler.sweep()
    if result is None:
        raise HTTPException(status_code=409, detail="A sweep is already running")
    return result


@router.get("/reports/crisis", response_model=CrisisReport)
async def crisis_report(
    window_hours: float = Query(4, gt=0, le=24 * 31),
    aggregator: ReportingAggregator = Depends(get_aggregator),
) -> CrisisReport:
    return await aggregator.build(window=timedelta(hours=window_hours))
