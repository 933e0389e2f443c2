"""Notification channel collaborators.

The engine only knows channel identifiers ("hotline", "admin_email", ...).
A NotificationChannel turns (channel, payload) into a delivery and raises on
failure; the dispatcher isolates each call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from crisis_engine.exceptions import ChannelNotConfiguredError

logger = logging.getLogger(__name__)

LOG_ONLY_SUFFIX = ":log_only"


class NotificationChannel(ABC):
    @abstractmethod
    async def send(self, channel: str, payload: dict[str, Any]) -> str:
        """Deliver *payload* on *channel* and return the label to record.

        The label is what ends up in the alert's notifications_sent. Raise on
        failure.
        """
        ...

    async def aclose(self) -> None:
        """Release any held resources."""


class LogChannel(NotificationChannel):
    """Log-only delivery, used when no webhook is configured for a channel.

    Nobody is contacted, so the recorded label carries a ``:log_only`` suffix
    and cannot be read as a real delivery.
    """

    async def send(self, channel: str, payload: dict[str, Any]) -> str:
        logger.warning(
            "CRISIS_NOTIFICATION_LOG_ONLY",
            extra={
                "channel": channel,
                "wave": payload.get("wave"),
                "alert_id": payload.get("alert_id"),
                "severity": payload.get("severity"),
            },
        )
        return f"{channel}{LOG_ONLY_SUFFIX}"


class WebhookChannel(NotificationChannel):
    """POSTs the payload as JSON to a per-channel URL.

    Channels without a configured URL raise ChannelNotConfiguredError unless a
    fallback channel is given, in which case they are delegated to it.
    """

    def __init__(
        self,
        urls: dict[str, str],
        timeout_seconds: float = 5.0,
        fallback: NotificationChannel | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._urls = dict(urls)
        self._fallback = fallback
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send(self, channel: str, payload: dict[str, Any]) -> str:
        url = self._urls.get(channel)
        if url is None:
            if self._fallback is None:
                raise ChannelNotConfiguredError(channel)
            return await self._fallback.send(channel, payload)
        response = await self._client.post(url, json={"channel": channel, **payload})
        response.raise_for_status()
        return channel

    async def aclose(self) -> None:
        await self._client.aclose()


def build_channel(webhooks: dict[str, str], timeout_seconds: float) -> NotificationChannel:
    if not webhooks:
        return LogChannel()
    return WebhookChannel(webhooks, timeout_seconds=timeout_seconds, fallback=LogChannel())
