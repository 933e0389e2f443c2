"""NotificationDispatcher: fans an alert out to its channel set.

Two waves exist:
    immediate   at creation, high/critical only, channels by severity
    escalation  after the scheduler escalates an alert

Every channel is attempted independently. A failing channel is logged and
skipped; it is never retried here. Channels that succeed are appended to the
alert's notifications_sent once all attempts have finished, under the label
the channel returns (log-only deliveries are suffixed ``:log_only``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal

from pymongo.errors import PyMongoError

from crisis_engine.config import NotificationConfig
from crisis_engine.model.alert import CrisisAlert, Severity
from crisis_engine.notifications.channels import LOG_ONLY_SUFFIX, NotificationChannel
from crisis_engine.store.alerts import AlertStore

logger = logging.getLogger(__name__)

Wave = Literal["immediate", "escalation"]


class NotificationDispatcher:
    def __init__(
        self,
        alert_store: AlertStore,
        channel: NotificationChannel,
        config: NotificationConfig,
    ) -> None:
        self._alert_store = alert_store
        self._channel = channel
        self._config = config

    def immediate_channels(self, severity: Severity) -> list[str]:
        if severity == "critical":
            return list(self._config.critical_channels)
        if severity == "high":
            return list(self._config.high_channels)
        return []

    async def send_immediate(self, alert: CrisisAlert) -> list[str]:
        """Run the creation wave for *alert*; returns the channels that succeeded."""
        return await self._send_wave(alert, "immediate", self.immediate_channels(alert.severity))

    async def send_escalation(self, alert: CrisisAlert) -> list[str]:
        """Run the escalation wave for *alert*; returns the channels that succeeded."""
        return await self._send_wave(alert, "escalation", list(self._config.escalation_channels))

    async def _send_wave(self, alert: CrisisAlert, wave: Wave, channels: list[str]) -> list[str]:
        if not channels:
            return []

        payload = _payload(alert, wave)
        results = await asyncio.gather(
            *(self._channel.send(channel, payload) for channel in channels),
            return_exceptions=True,
        )

        delivered: list[str] = []
        failed: list[str] = []
        for channel, result in zip(channels, results):
            if isinstance(result, Exception):
                failed.append(channel)
                logger.error(
                    "NOTIFICATION_CHANNEL_FAILED",
                    extra={
                        "alert_id": alert.id,
                        "wave": wave,
                        "channel": channel,
                        "error": repr(result),
                    },
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                delivered.append(result)

        try:
            await self._alert_store.append_notifications(alert.id, delivered)
        except PyMongoError as exc:
            logger.error(
                "NOTIFICATION_RECORD_FAILED",
                extra={"alert_id": alert.id, "wave": wave, "channels": delivered, "error": str(exc)},
            )

        for channel in delivered:
            if channel not in alert.notifications_sent:
                alert.notifications_sent.append(channel)

        logger.info(
            "NOTIFICATION_WAVE_SENT",
            extra={
                "alert_id": alert.id,
                "wave": wave,
                "severity": alert.severity,
                "delivered": delivered,
                "failed": failed,
                "log_only": [c for c in delivered if c.endswith(LOG_ONLY_SUFFIX)],
            },
        )
        return delivered


def _payload(alert: CrisisAlert, wave: Wave) -> dict[str, Any]:
    # The excerpt stays in the store for reviewers; it is not broadcast.
    return {
        "wave": wave,
        "alert_id": alert.id,
        "subject_id": alert.subject_id,
        "severity": alert.severity,
        "trigger_type": alert.trigger_type,
        "risk_factors": list(alert.risk_factors),
        "created_at": alert.created_at.isoformat(),
        "escalated": alert.escalated,
    }
