"""Assessment extractor: thresholds on a screening total and its subscales.

The total score maps to at most one indicator (the highest band reached).
Each subscale at or above its severe threshold contributes a named
indicator, and two or more subscales at or above the combined-elevation
threshold contribute one extra combined indicator.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from crisis_engine.config import AssessmentConfig
from crisis_engine.detections.base import RiskIndicator

logger = logging.getLogger(__name__)


def _as_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return float(value)


def _total_indicator(total: float, config: AssessmentConfig) -> RiskIndicator | None:
    if total >= config.critical_total:
        return RiskIndicator("assessment", config.total_critical_weight, "extremely_high_assessment_score")
    if total >= config.high_total:
        return RiskIndicator("assessment", config.total_high_weight, "high_assessment_score")
    if total >= config.medium_total:
        return RiskIndicator("assessment", config.total_medium_weight, "moderate_assessment_score")
    return None


def extract(
    total_score: object,
    subscales: object,
    config: AssessmentConfig,
) -> list[RiskIndicator]:
    """Return the indicators implied by an assessment result."""
    indicators: list[RiskIndicator] = []

    total = _as_number(total_score)
    if total is not None:
        found = _total_indicator(total, config)
        if found:
            indicators.append(found)
    elif total_score is not None:
        logger.warning("ASSESSMENT_TOTAL_UNREADABLE", extra={"type": type(total_score).__name__})

    if not isinstance(subscales, Mapping):
        return indicators

    elevated: list[str] = []
    for name, raw in subscales.items():
        value = _as_number(raw)
        if value is None or not isinstance(name, str):
            continue
        severe_at = config.subscale_thresholds.get(name, config.severe_subscale)
        if value >= severe_at:
            indicators.append(
                RiskIndicator("assessment", config.subscale_weight, f"severe_{name}_indicators")
            )
        if value >= config.combined_elevation:
            elevated.append(name)

    if len(elevated) >= config.combined_min_subscales:
        indicators.append(
            RiskIndicator("assessment", config.combined_weight, "combined_" + "_".join(elevated))
        )

    return indicators
