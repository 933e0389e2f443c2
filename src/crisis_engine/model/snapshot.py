"""Operational snapshot records emitted by the periodic actors.

Each record is immutable and tagged with a ``kind`` so sinks can accept the
Snapshot union and dispatch on the discriminator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from crisis_engine.model.alert import Severity


class EscalationSweep(BaseModel):
    """Outcome of one escalation sweep."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["escalation_sweep"] = "escalation_sweep"
    started_at: datetime
    finished_at: datetime
    candidates: int = 0
    escalated_ids: tuple[str, ...] = ()
    skipped_ids: tuple[str, ...] = ()  # lost the race to a resolution or another sweep
    failed_ids: tuple[str, ...] = ()   # store error; retried next wake
    fetch_failed: tuple[Severity, ...] = ()


class SeverityCounts(BaseModel):
    """Alert count per severity tier."""

    model_config = ConfigDict(frozen=True)

    low: int = 0
    medium: int = 0
    high: int = 0
    critical: int = 0


class CrisisReport(BaseModel):
    """Rollup of alerts created within a trailing window."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["crisis_report"] = "crisis_report"
    generated_at: datetime
    window_start: datetime
    window_end: datetime
    total: int
    by_severity: SeverityCounts
    resolved: int
    escalated: int
    resolution_rate: float


Snapshot = Annotated[
    Union[EscalationSweep, CrisisReport],
    Field(discriminator="kind"),
]
