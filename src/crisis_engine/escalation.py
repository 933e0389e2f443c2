"""EscalationScheduler: periodic sweep that escalates overdue open alerts.

Every wake_interval_seconds the scheduler looks, per severity, for alerts
that are unresolved, not yet escalated, and older than that severity's
response deadline. Each one is escalated through the store's conditional
update; only when that update wins is the escalation wave sent. A resolution
that lands first makes the escalation a no-op.

Sweeps are single-flight: the background loop runs them back to back, and a
manually triggered sweep that finds one already running is skipped. Store
errors are logged and the affected alerts are picked up again next wake.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from datetime import datetime, timedelta, timezone

from pymongo.errors import PyMongoError

from crisis_engine.config import EscalationConfig
from crisis_engine.model.alert import SEVERITY_ORDER, Severity
from crisis_engine.model.snapshot import EscalationSweep
from crisis_engine.notifications.dispatcher import NotificationDispatcher
from crisis_engine.sinks import SnapshotSink
from crisis_engine.store.alerts import AlertStore

logger = logging.getLogger(__name__)


class EscalationScheduler:
    def __init__(
        self,
        alert_store: AlertStore,
        dispatcher: NotificationDispatcher,
        config: EscalationConfig,
        sink: SnapshotSink | None = None,
    ) -> None:
        self._alert_store = alert_store
        self._dispatcher = dispatcher
        self._config = config
        self._sink = sink
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    def deadline(self, severity: Severity) -> timedelta:
        return timedelta(seconds=self._config.deadlines()[severity])

    async def start(self) -> None:
        """Start the background sweep loop (called from the FastAPI lifespan)."""
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.wake_interval_seconds)
            try:
                await self.sweep()
            except Exception:
                # The loop must survive anything a single sweep throws.
                logger.exception("ESCALATION_SWEEP_CRASHED")

    async def sweep(self, now: datetime | None = None) -> EscalationSweep | None:
        """Run one sweep. Returns None if another sweep is already in flight."""
        if self._lock.locked():
            logger.info("ESCALATION_SWEEP_SKIPPED_IN_FLIGHT")
            return None
        async with self._lock:
            result = await self._sweep(now or datetime.now(tz=timezone.utc))

        if self._sink is not None and (result.candidates or result.failed_ids or result.fetch_failed):
            try:
                await self._sink.publish(result)
            except Exception as exc:
                logger.error("ESCALATION_SWEEP_PUBLISH_FAILED", extra={"error": repr(exc)})
        return result

    async def _sweep(self, now: datetime) -> EscalationSweep:
        candidates = 0
        escalated: list[str] = []
        skipped: list[str] = []
        failed: list[str] = []
        fetch_failed: list[Severity] = []

        # Most urgent tier first.
        for severity in reversed(SEVERITY_ORDER):
            try:
                overdue = await self._alert_store.list_unresolved_unescalated(
                    older_than=self.deadline(severity), severity=severity, now=now
                )
            except PyMongoError as exc:
                logger.error(
                    "ESCALATION_FETCH_FAILED",
                    extra={"severity": severity, "error": str(exc)},
                )
                fetch_failed.append(severity)
                continue

            for alert in overdue:
                candidates += 1
                try:
                    won = await self._alert_store.escalate(alert.id, now=now)
                except PyMongoError as exc:
                    logger.error(
                        "ALERT_ESCALATION_FAILED",
                        extra={"alert_id": alert.id, "severity": severity, "error": str(exc)},
                    )
                    failed.append(alert.id)
                    continue

                if not won:
                    skipped.append(alert.id)
                    continue

                alert.escalated = True
                alert.escalated_at = now
                logger.critical(
                    "ALERT_ESCALATED",
                    extra={
                        "alert_id": alert.id,
                        "subject_id": alert.subject_id,
                        "severity": severity,
                        "age_seconds": (now - alert.created_at).total_seconds(),
                    },
                )
                escalated.append(alert.id)
                await self._dispatcher.send_escalation(alert)

        return EscalationSweep(
            started_at=now,
            finished_at=datetime.now(tz=timezone.utc),
            candidates=candidates,
            escalated_ids=tuple(escalated),
            skipped_ids=tuple(skipped),
            failed_ids=tuple(failed),
            fetch_failed=tuple(fetch_failed),
        )
