"""Shared pytest fixtures for the crisis alert engine test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from crisis_engine.config import (
    AppConfig,
    AssessmentConfig,
    BehaviorConfig,
    ClassifierConfig,
    EscalationConfig,
    KeywordConfig,
    NotificationConfig,
    ReportingConfig,
)
from crisis_engine.engine import CrisisEngine
from crisis_engine.escalation import EscalationScheduler
from crisis_engine.exceptions import AlertPersistenceError
from crisis_engine.model.alert import AlertDraft, CrisisAlert, Severity
from crisis_engine.model.snapshot import Snapshot
from crisis_engine.notifications.channels import NotificationChannel
from crisis_engine.notifications.dispatcher import NotificationDispatcher
from crisis_engine.reporting import ReportingAggregator
from crisis_engine.sinks import SnapshotSink

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def keyword_config() -> KeywordConfig:
    return KeywordConfig()


@pytest.fixture
def classifier_config() -> ClassifierConfig:
    return ClassifierConfig()


@pytest.fixture
def assessment_config() -> AssessmentConfig:
    return AssessmentConfig()


@pytest.fixture
def behavior_config() -> BehaviorConfig:
    return BehaviorConfig()


@pytest.fixture
def escalation_config() -> EscalationConfig:
    return EscalationConfig()


@pytest.fixture
def notification_config() -> NotificationConfig:
    return NotificationConfig()


@pytest.fixture
def reporting_config() -> ReportingConfig:
    return ReportingConfig()


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class InMemoryAlertStore:
    """Dict-backed stand-in for AlertStore with the same conditional semantics."""

    def __init__(self) -> None:
        self.alerts: dict[str, CrisisAlert] = {}
        self.fail_create = False

    async def create(self, draft: AlertDraft, created_at: datetime | None = None) -> CrisisAlert:
        if self.fail_create:
            raise AlertPersistenceError("store down", subject_id=draft.subject_id)
        alert = CrisisAlert.from_draft(draft, created_at=created_at)
        self.alerts[alert.id] = alert.model_copy(deep=True)
        return alert

    async def get_by_id(self, alert_id: str) -> CrisisAlert | None:
        stored = self.alerts.get(alert_id)
        return stored.model_copy(deep=True) if stored else None

    async def resolve(self, alert_id: str, resolved_by: str, now: datetime | None = None) -> bool:
        stored = self.alerts.get(alert_id)
        if stored is None:
            return False
        if not stored.resolved:
            stored.resolved = True
            stored.resolved_at = now or datetime.now(tz=timezone.utc)
            stored.resolved_by = resolved_by
        return True

    async def escalate(self, alert_id: str, now: datetime | None = None) -> bool:
        stored = self.alerts.get(alert_id)
        if stored is None or stored.resolved or stored.escalated:
            return False
        stored.escalated = True
        stored.escalated_at = now or datetime.now(tz=timezone.utc)
        return True

    async def append_notifications(self, alert_id: str, channels: list[str]) -> None:
        stored = self.alerts[alert_id]
        for channel in channels:
            if channel not in stored.notifications_sent:
                stored.notifications_sent.append(channel)

    async def list_unresolved_unescalated(
        self,
        older_than: timedelta,
        severity: Severity | None = None,
        now: datetime | None = None,
    ) -> list[CrisisAlert]:
        cutoff = (now or datetime.now(tz=timezone.utc)) - older_than
        return [
            a.model_copy(deep=True)
            for a in sorted(self.alerts.values(), key=lambda a: a.created_at)
            if not a.resolved
            and not a.escalated
            and a.created_at < cutoff
            and (severity is None or a.severity == severity)
        ]

    async def list_active(self, skip: int = 0, limit: int | None = None) -> list[CrisisAlert]:
        active = [a for a in self.alerts.values() if not a.resolved]
        active.sort(key=lambda a: (a.severity_rank, a.created_at), reverse=True)
        end = None if limit is None else skip + limit
        return [a.model_copy(deep=True) for a in active[skip:end]]

    async def list_created_since(
        self, since: datetime, until: datetime | None = None
    ) -> list[CrisisAlert]:
        return [
            a.model_copy(deep=True)
            for a in self.alerts.values()
            if a.created_at >= since and (until is None or a.created_at < until)
        ]


class RecordingChannel(NotificationChannel):
    """Records every send; channels listed in ``failing`` raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.failing = failing or set()

    async def send(self, channel: str, payload: dict[str, Any]) -> str:
        if channel in self.failing:
            raise ConnectionError(f"{channel} unreachable")
        self.sent.append((channel, payload))
        return channel

    def channels(self, wave: str | None = None) -> list[str]:
        return [c for c, p in self.sent if wave is None or p["wave"] == wave]


class RecordingSink(SnapshotSink):
    def __init__(self) -> None:
        self.published: list[Snapshot] = []

    async def publish(self, snapshot: Snapshot) -> None:
        self.published.append(snapshot)


@pytest.fixture
def alert_store() -> InMemoryAlertStore:
    return InMemoryAlertStore()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(
    alert_store: InMemoryAlertStore,
    channel: RecordingChannel,
    notification_config: NotificationConfig,
) -> NotificationDispatcher:
    return NotificationDispatcher(alert_store, channel, notification_config)  # type: ignore[arg-type]


@pytest.fixture
def engine(
    alert_store: InMemoryAlertStore,
    dispatcher: NotificationDispatcher,
    app_config: AppConfig,
) -> CrisisEngine:
    return CrisisEngine(alert_store, dispatcher, app_config)  # type: ignore[arg-type]


@pytest.fixture
def scheduler(
    alert_store: InMemoryAlertStore,
    dispatcher: NotificationDispatcher,
    escalation_config: EscalationConfig,
    sink: RecordingSink,
) -> EscalationScheduler:
    return EscalationScheduler(alert_store, dispatcher, escalation_config, sink=sink)  # type: ignore[arg-type]


@pytest.fixture
def aggregator(
    alert_store: InMemoryAlertStore,
    sink: RecordingSink,
    reporting_config: ReportingConfig,
) -> ReportingAggregator:
    return ReportingAggregator(alert_store, sink, reporting_config)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_draft() -> Callable[..., AlertDraft]:
    """Factory: create an AlertDraft with sensible defaults, override via kwargs."""

    def _factory(**kwargs: Any) -> AlertDraft:
        defaults: dict[str, Any] = {
            "subject_id": "subj-3f9a2c",
            "severity": "high",
            "trigger_type": "keyword",
            "risk_factors": ["hopeless"],
        }
        defaults.update(kwargs)
        return AlertDraft(**defaults)

    return _factory


@pytest.fixture
def seed_alert(
    alert_store: InMemoryAlertStore, make_draft: Callable[..., AlertDraft]
) -> Callable[..., Any]:
    """Factory: store an alert created at a given time."""

    async def _seed(created_at: datetime = T0, **kwargs: Any) -> CrisisAlert:
        return await alert_store.create(make_draft(**kwargs), created_at=created_at)

    return _seed
