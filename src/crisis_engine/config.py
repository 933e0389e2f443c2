"""PyYAML loader → typed config dataclasses."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

import yaml

from crisis_engine.exceptions import ConfigError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass
class KeywordConfig:
    default_language: str = "en"
    critical_weight: int = 10
    high_weight: int = 7
    medium_weight: int = 4


@dataclass
class ClassifierConfig:
    critical_threshold: int = 10
    high_threshold: int = 7
    medium_threshold: int = 4
    context_score_high: float = 9
    context_score_medium: float = 6
    context_score_high_bonus: int = 3
    context_score_medium_bonus: int = 1
    repeat_alert_count: int = 2
    repeat_alert_bonus: int = 2
    short_session_seconds: float = 60
    short_session_bonus: int = 1


@dataclass
class AssessmentConfig:
    critical_total: float = 11
    high_total: float = 9
    medium_total: float = 6
    severe_subscale: float = 5
    # per-subscale override of severe_subscale, keyed by subscale name
    subscale_thresholds: dict[str, float] = field(default_factory=dict)
    combined_elevation: float = 4
    combined_min_subscales: int = 2
    total_critical_weight: int = 10
    total_high_weight: int = 7
    total_medium_weight: int = 4
    subscale_weight: int = 4
    combined_weight: int = 7


@dataclass
class BehaviorConfig:
    trend_samples: int = 3
    mood_recent_samples: int = 3
    mood_prior_samples: int = 2
    mood_decline_points: float = 1.0
    window_days: int = 7
    engagement_drop_ratio: float = 0.5
    social_markers: list[str] = field(default_factory=lambda: ["group", "buddy", "peer"])
    condition_weight: int = 4
    combined_min_conditions: int = 3
    combined_weight: int = 7


@dataclass
class EscalationConfig:
    wake_interval_seconds: int = 60
    critical_deadline_seconds: int = 300
    high_deadline_seconds: int = 900
    medium_deadline_seconds: int = 3600
    low_deadline_seconds: int = 14400

    def deadlines(self) -> dict[str, int]:
        return {
            "critical": self.critical_deadline_seconds,
            "high": self.high_deadline_seconds,
            "medium": self.medium_deadline_seconds,
            "low": self.low_deadline_seconds,
        }


@dataclass
class NotificationConfig:
    critical_channels: list[str] = field(
        default_factory=lambda: ["hotline", "admin_sms", "admin_email"]
    )
    high_channels: list[str] = field(default_factory=lambda: ["admin_email", "chat_urgent"])
    escalation_channels: list[str] = field(
        default_factory=lambda: ["escalation_team", "emergency_contact"]
    )
    # channel id -> webhook URL; empty = log-only delivery
    webhooks: dict[str, str] = field(default_factory=dict)
    webhook_timeout_seconds: float = 5.0


@dataclass
class ReportingConfig:
    interval_seconds: int = 14400
    window_seconds: int = 14400
    store_snapshots: bool = False


@dataclass
class AppConfig:
    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    assessment: AssessmentConfig = field(default_factory=AssessmentConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    escalation: EscalationConfig = field(default_factory=EscalationConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "crisis_engine"


def _section(cls: type[_T], raw: dict, name: str) -> _T:  # type: ignore[type-arg]
    """Build a config dataclass from the keys of raw[name] it knows about.

    A section with no keys (or only commented-out ones) loads as defaults.
    """
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"config section '{name}' must be a mapping, got {type(section).__name__}")
    known = {k: v for k, v in section.items() if k in cls.__dataclass_fields__}  # type: ignore[attr-defined]
    unknown = sorted(set(section) - set(known))
    if unknown:
        logger.warning("CONFIG_UNKNOWN_KEYS", extra={"section": cls.__name__, "keys": unknown})
    return cls(**known)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load thresholds.yaml and return a typed AppConfig.

    Falls back to defaults if the file is absent or a section is missing.
    Environment variables MONGO_URI and MONGO_DB override the defaults.
    """
    raw: dict = {}
    if path is None:
        path = Path(__file__).parent.parent.parent / "config" / "thresholds.yaml"

    resolved = Path(path)
    if resolved.exists():
        with resolved.open() as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{resolved} must contain a mapping at the top level")

    config = AppConfig(
        keywords=_section(KeywordConfig, raw, "keywords"),
        classifier=_section(ClassifierConfig, raw, "classifier"),
        assessment=_section(AssessmentConfig, raw, "assessment"),
        behavior=_section(BehaviorConfig, raw, "behavior"),
        escalation=_section(EscalationConfig, raw, "escalation"),
        notifications=_section(NotificationConfig, raw, "notifications"),
        reporting=_section(ReportingConfig, raw, "reporting"),
        mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
        mongo_db=os.getenv("MONGO_DB", "crisis_engine"),
    )
    _check_wake_interval(config.escalation)
    return config


def _check_wake_interval(config: EscalationConfig) -> None:
    # Escalation latency is bounded by the wake period only if it is at most
    # half of the tightest deadline.
    tightest = min(config.deadlines().values())
    if config.wake_interval_seconds > tightest / 2:
        logger.warning(
            "ESCALATION_WAKE_INTERVAL_TOO_LONG",
            extra={
                "wake_interval_seconds": config.wake_interval_seconds,
                "tightest_deadline_seconds": tightest,
            },
        )
