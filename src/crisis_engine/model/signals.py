"""Inbound signal models: the raw material the extractors read.

Every timestamp is treated as UTC; naive datetimes are assumed to already be
in UTC.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AnalysisContext(BaseModel):
    """Optional facts about the conversation a piece of text came from."""

    prior_score: float | None = None         # e.g. latest assessment total
    prior_alert_count: int | None = None     # alerts already raised for the subject
    session_duration_sec: float | None = None


class AssessmentInput(BaseModel):
    total_score: float
    subscales: dict[str, float] = Field(default_factory=dict)


class AssessmentSample(BaseModel):
    total_score: float
    completed_at: datetime


class MoodSample(BaseModel):
    score: float  # 1–10, higher is better
    logged_at: datetime


class Interaction(BaseModel):
    interaction_type: str  # e.g. "chat", "group_session", "buddy_message"
    timestamp: datetime


class BehaviorHistory(BaseModel):
    """Recent activity for one subject, in any order."""

    assessments: list[AssessmentSample] = Field(default_factory=list)
    moods: list[MoodSample] = Field(default_factory=list)
    interactions: list[Interaction] = Field(default_factory=list)
