"""ReportingAggregator: periodic rollup of recent alert activity.

Read-only over the alert store: it counts, it never updates.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from datetime import datetime, timedelta, timezone

from crisis_engine.config import ReportingConfig
from crisis_engine.model.alert import SEVERITY_ORDER, CrisisAlert
from crisis_engine.model.snapshot import CrisisReport, SeverityCounts
from crisis_engine.sinks import SnapshotSink
from crisis_engine.store.alerts import AlertStore

logger = logging.getLogger(__name__)


def summarize(
    alerts: list[CrisisAlert],
    window_start: datetime,
    window_end: datetime,
    generated_at: datetime | None = None,
) -> CrisisReport:
    by_severity = {severity: 0 for severity in SEVERITY_ORDER}
    resolved = escalated = 0
    for alert in alerts:
        by_severity[alert.severity] += 1
        resolved += alert.resolved
        escalated += alert.escalated

    total = len(alerts)
    return CrisisReport(
        generated_at=generated_at or window_end,
        window_start=window_start,
        window_end=window_end,
        total=total,
        by_severity=SeverityCounts(**by_severity),
        resolved=resolved,
        escalated=escalated,
        resolution_rate=resolved / total if total else 0.0,
    )


class ReportingAggregator:
    def __init__(
        self,
        alert_store: AlertStore,
        sink: SnapshotSink,
        config: ReportingConfig,
    ) -> None:
        self._alert_store = alert_store
        self._sink = sink
        self._config = config
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    async def build(
        self, now: datetime | None = None, window: timedelta | None = None
    ) -> CrisisReport:
        """Compute a report over the trailing window ending at *now*."""
        end = now or datetime.now(tz=timezone.utc)
        start = end - (window or timedelta(seconds=self._config.window_seconds))
        alerts = await self._alert_store.list_created_since(start, until=end)
        return summarize(alerts, start, end)

    async def run_once(self, now: datetime | None = None) -> CrisisReport:
        report = await self.build(now)
        await self._sink.publish(report)
        return report

    async def start(self) -> None:
        """Start the background reporting loop (called from the FastAPI lifespan)."""
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("CRISIS_REPORT_FAILED")
