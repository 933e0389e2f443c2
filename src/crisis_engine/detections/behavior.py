"""Behavioral extractor: longitudinal patterns in a subject's recent history.

Four independent conditions are checked, each contributing one indicator:

    worsening_assessment_scores   last N assessment totals strictly increasing
    declining_mood_pattern        mean of the latest moods at least
                                  mood_decline_points below the mean before them
    sudden_engagement_drop        interactions in the recent window below
                                  engagement_drop_ratio of the window before
    social_isolation_pattern      active in the recent window, but no social
                                  interaction in it

Three or more true conditions add a combined multiple_risk_patterns indicator.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from statistics import fmean

from pydantic import ValidationError

from crisis_engine.config import BehaviorConfig
from crisis_engine.detections.base import RiskIndicator
from crisis_engine.model.signals import BehaviorHistory, Interaction

logger = logging.getLogger(__name__)


def _utc(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def assessment_worsening(history: BehaviorHistory, config: BehaviorConfig) -> bool:
    if config.trend_samples < 2 or len(history.assessments) < config.trend_samples:
        return False
    ordered = sorted(history.assessments, key=lambda a: _utc(a.completed_at))
    scores = [a.total_score for a in ordered[-config.trend_samples:]]
    return all(later > earlier for earlier, later in zip(scores, scores[1:]))


def mood_declining(history: BehaviorHistory, config: BehaviorConfig) -> bool:
    needed = config.mood_recent_samples + config.mood_prior_samples
    if config.mood_recent_samples < 1 or config.mood_prior_samples < 1:
        return False
    if len(history.moods) < needed:
        return False
    ordered = sorted(history.moods, key=lambda m: _utc(m.logged_at))[-needed:]
    prior = fmean(m.score for m in ordered[: config.mood_prior_samples])
    recent = fmean(m.score for m in ordered[config.mood_prior_samples:])
    return recent <= prior - config.mood_decline_points


def _split_windows(
    interactions: list[Interaction], as_of: datetime, window: timedelta
) -> tuple[list[Interaction], list[Interaction]]:
    recent: list[Interaction] = []
    previous: list[Interaction] = []
    for interaction in interactions:
        age = as_of - _utc(interaction.timestamp)
        if timedelta(0) <= age < window:
            recent.append(interaction)
        elif window <= age < 2 * window:
            previous.append(interaction)
    return recent, previous


def _is_social(interaction: Interaction, markers: list[str]) -> bool:
    kind = interaction.interaction_type.lower()
    return any(marker in kind for marker in markers)


def extract(
    history: object,
    config: BehaviorConfig,
    as_of: datetime | None = None,
) -> list[RiskIndicator]:
    """Return the behavioral indicators present in *history*."""
    if history is None:
        return []
    if not isinstance(history, BehaviorHistory):
        try:
            history = BehaviorHistory.model_validate(history)
        except ValidationError as exc:
            logger.warning("BEHAVIOR_HISTORY_UNREADABLE", extra={"errors": exc.error_count()})
            return []

    as_of = _utc(as_of) if as_of is not None else datetime.now(tz=timezone.utc)
    window = timedelta(days=config.window_days)
    recent, previous = _split_windows(history.interactions, as_of, window)

    conditions = {
        "worsening_assessment_scores": assessment_worsening(history, config),
        "declining_mood_pattern": mood_declining(history, config),
        "sudden_engagement_drop": len(recent) < len(previous) * config.engagement_drop_ratio,
        "social_isolation_pattern": bool(recent)
        and not any(_is_social(i, config.social_markers) for i in recent),
    }

    indicators = [
        RiskIndicator("behavior", config.condition_weight, label)
        for label, present in conditions.items()
        if present
    ]
    if len(indicators) >= config.combined_min_conditions:
        indicators.append(RiskIndicator("behavior", config.combined_weight, "multiple_risk_patterns"))
    return indicators
