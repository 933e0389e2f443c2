"""Severity classifier: indicators plus context → one severity tier.

The strongest single indicator sets the base weight (max, not sum, so many
weak hits never add up to a strong one). Context modifiers are then added:

    prior score ≥ high threshold      +3
    prior score ≥ medium threshold    +1   (only if not high)
    prior alert count > 2             +2
    session shorter than 60 s         +1

and the total is mapped onto critical / high / medium / low.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from crisis_engine.config import ClassifierConfig
from crisis_engine.detections.base import RiskIndicator
from crisis_engine.model.alert import Severity
from crisis_engine.model.signals import AnalysisContext


@dataclass
class Classification:
    severity: Severity
    weight: int
    modifiers: list[str] = field(default_factory=list)


def _tier(weight: int, config: ClassifierConfig) -> Severity:
    if weight >= config.critical_threshold:
        return "critical"
    if weight >= config.high_threshold:
        return "high"
    if weight >= config.medium_threshold:
        return "medium"
    return "low"


def score(
    indicators: list[RiskIndicator],
    context: AnalysisContext | None,
    config: ClassifierConfig,
) -> Classification:
    """Classify and report which context modifiers were applied."""
    weight = max((i.weight for i in indicators), default=0)
    modifiers: list[str] = []

    if context is not None:
        if context.prior_score is not None:
            if context.prior_score >= config.context_score_high:
                weight += config.context_score_high_bonus
                modifiers.append("high_prior_score")
            elif context.prior_score >= config.context_score_medium:
                weight += config.context_score_medium_bonus
                modifiers.append("moderate_prior_score")

        if context.prior_alert_count is not None and context.prior_alert_count > config.repeat_alert_count:
            weight += config.repeat_alert_bonus
            modifiers.append("repeated_prior_alerts")

        if (
            context.session_duration_sec is not None
            and context.session_duration_sec < config.short_session_seconds
        ):
            weight += config.short_session_bonus
            modifiers.append("short_session")

    return Classification(severity=_tier(weight, config), weight=weight, modifiers=modifiers)


def classify(
    indicators: list[RiskIndicator],
    context: AnalysisContext | None,
    config: ClassifierConfig,
) -> Severity:
    return score(indicators, context, config).severity
