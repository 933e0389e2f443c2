"""CrisisAlert Pydantic model: persisted to MongoDB when a risk signal fires."""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, computed_field, field_validator

Severity = Literal["low", "medium", "high", "critical"]
TriggerType = Literal["keyword", "assessment_score", "behavioral_pattern", "manual"]

SEVERITY_ORDER: tuple[Severity, ...] = ("low", "medium", "high", "critical")
EXCERPT_MAX_CHARS = 500

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+\d[\d\s\-().]{6,}$")


def _opaque_subject_id(value: str) -> str:
    # Callers hash contact details before they reach the engine.
    if _EMAIL_RE.match(value) or _PHONE_RE.match(value):
        raise ValueError("subject_id must be an opaque identifier, not a contact address")
    return value


SubjectId = Annotated[str, Field(min_length=1, max_length=256), AfterValidator(_opaque_subject_id)]


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def rank_of(severity: Severity) -> int:
    return SEVERITY_ORDER.index(severity)


def higher_severity(*levels: Severity) -> Severity:
    """Return the most severe of *levels* (``low`` when none are given)."""
    if not levels:
        return "low"
    return max(levels, key=rank_of)


class AlertDraft(BaseModel):
    """Everything the engine knows about an alert before it is stored."""

    subject_id: SubjectId
    severity: Severity
    trigger_type: TriggerType
    risk_factors: list[str] = Field(default_factory=list)
    excerpt: str | None = None
    context_score: float | None = None
    detection_latency_ms: float = 0.0

    @field_validator("risk_factors")
    @classmethod
    def _dedupe_risk_factors(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("excerpt")
    @classmethod
    def _truncate_excerpt(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value[:EXCERPT_MAX_CHARS]


class CrisisAlert(AlertDraft):
    """A stored alert and its lifecycle state."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_utcnow)
    resolved: bool = False
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    escalated: bool = False
    escalated_at: datetime | None = None
    notifications_sent: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def severity_rank(self) -> int:
        return rank_of(self.severity)

    @classmethod
    def from_draft(cls, draft: AlertDraft, created_at: datetime | None = None) -> CrisisAlert:
        data = draft.model_dump()
        if created_at is not None:
            data["created_at"] = created_at
        return cls(**data)
