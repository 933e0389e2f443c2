"""FastAPI dependency providers.

All shared resources (store, engine, scheduler, aggregator) are attached to
app.state at startup and retrieved here via Request injection.
"""

from __future__ import annotations

from fastapi import Request

from crisis_engine.engine import CrisisEngine
from crisis_engine.escalation import EscalationScheduler
from crisis_engine.reporting import ReportingAggregator
from crisis_engine.store.alerts import AlertStore


def get_alert_store(request: Request) -> AlertStore:
    return request.app.state.alert_store  # type: ignore[no-any-return]


def get_engine(request: Request) -> CrisisEngine:
    return request.app.state.engine  # type: ignore[no-any-return]


def get_scheduler(request: Request) -> EscalationScheduler:
    return request.app.state.scheduler  # type: ignore[no-any-return]


def get_aggregator(request: Request) -> ReportingAggregator:
    return request.app.state.aggregator  # type: ignore[no-any-return]
