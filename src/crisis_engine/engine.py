"""CrisisEngine: the entry point upstream callers use.

Routes each signal type to its extractor, classifies the result, and writes
an alert when the result clears the no-alert floor:

    analyze_text        keyword extractor (+ assessment if one came with the text)
    analyze_assessment  assessment extractor
    analyze_behavior    behavioral extractor

The alert is stored before anything is sent. High and critical alerts then
get the immediate notification wave. A failed write raises
AlertPersistenceError to the caller; nothing is swallowed.

Extractors and the classifier are pure Python and have no I/O; the engine is
the only place that combines them with the async store and dispatcher.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime

from crisis_engine.config import AppConfig
from crisis_engine.detections import assessment, behavior, classifier, keywords
from crisis_engine.detections.base import RiskIndicator
from crisis_engine.model.alert import AlertDraft, CrisisAlert, Severity, TriggerType, higher_severity
from crisis_engine.model.signals import AnalysisContext, AssessmentInput, BehaviorHistory
from crisis_engine.notifications.dispatcher import NotificationDispatcher
from crisis_engine.store.alerts import AlertStore

logger = logging.getLogger(__name__)

_IMMEDIATE: frozenset[Severity] = frozenset({"high", "critical"})


class CrisisEngine:
    def __init__(
        self,
        alert_store: AlertStore,
        dispatcher: NotificationDispatcher,
        config: AppConfig,
    ) -> None:
        self._alert_store = alert_store
        self._dispatcher = dispatcher
        self._config = config

    async def analyze_text(
        self,
        subject_id: str,
        text: str,
        language: str = "en",
        context: AnalysisContext | None = None,
        assessment_input: AssessmentInput | None = None,
    ) -> CrisisAlert | None:
        """Scan *text* for crisis language and raise an alert if warranted.

        When the same event also carries an assessment result, both are
        classified and the higher severity wins.
        """
        started = time.perf_counter()
        indicators = keywords.extract(text, language, self._config.keywords)
        result = classifier.score(indicators, context, self._config.classifier)
        severity = result.severity

        if assessment_input is not None:
            extra = assessment.extract(
                assessment_input.total_score, assessment_input.subscales, self._config.assessment
            )
            severity = higher_severity(
                severity, classifier.classify(extra, None, self._config.classifier)
            )
            indicators = indicators + extra

        context_score = context.prior_score if context else None
        if assessment_input is not None:
            context_score = assessment_input.total_score

        return await self._raise(
            subject_id=subject_id,
            severity=severity,
            trigger_type="keyword",
            indicators=indicators,
            modifiers=result.modifiers,
            excerpt=text if isinstance(text, str) else None,
            context_score=context_score,
            started=started,
        )

    async def analyze_assessment(
        self,
        subject_id: str,
        total_score: float,
        subscales: dict[str, float] | None = None,
    ) -> CrisisAlert | None:
        started = time.perf_counter()
        indicators = assessment.extract(total_score, subscales or {}, self._config.assessment)
        severity = classifier.classify(indicators, None, self._config.classifier)
        return await self._raise(
            subject_id=subject_id,
            severity=severity,
            trigger_type="assessment_score",
            indicators=indicators,
            context_score=total_score if isinstance(total_score, (int, float)) else None,
            started=started,
        )

    async def analyze_behavior(
        self,
        subject_id: str,
        history: BehaviorHistory,
        as_of: datetime | None = None,
    ) -> CrisisAlert | None:
        started = time.perf_counter()
        indicators = behavior.extract(history, self._config.behavior, as_of=as_of)
        severity = classifier.classify(indicators, None, self._config.classifier)
        return await self._raise(
            subject_id=subject_id,
            severity=severity,
            trigger_type="behavioral_pattern",
            indicators=indicators,
            started=started,
        )

    async def raise_manual(
        self,
        subject_id: str,
        severity: Severity,
        risk_factors: list[str],
        excerpt: str | None = None,
    ) -> CrisisAlert:
        """Store an operator-raised alert; it follows the normal lifecycle."""
        draft = AlertDraft(
            subject_id=subject_id,
            severity=severity,
            trigger_type="manual",
            risk_factors=risk_factors or ["manual_report"],
            excerpt=excerpt,
        )
        return await self._persist_and_notify(draft)

    async def resolve(self, alert_id: str, resolved_by: str) -> bool:
        resolved = await self._alert_store.resolve(alert_id, resolved_by)
        if resolved:
            logger.info("ALERT_RESOLVED", extra={"alert_id": alert_id, "resolved_by": resolved_by})
        return resolved

    async def list_active(self, skip: int = 0, limit: int | None = None) -> list[CrisisAlert]:
        return await self._alert_store.list_active(skip=skip, limit=limit)

    async def _raise(
        self,
        *,
        subject_id: str,
        severity: Severity,
        trigger_type: TriggerType,
        indicators: list[RiskIndicator],
        started: float,
        modifiers: list[str] | None = None,
        excerpt: str | None = None,
        context_score: float | None = None,
    ) -> CrisisAlert | None:
        if severity == "low" and not indicators:
            return None

        draft = AlertDraft(
            subject_id=subject_id,
            severity=severity,
            trigger_type=trigger_type,
            risk_factors=_risk_factors(indicators) + list(modifiers or []),
            excerpt=excerpt,
            context_score=context_score,
            detection_latency_ms=(time.perf_counter() - started) * 1000,
        )
        return await self._persist_and_notify(draft)

    async def _persist_and_notify(self, draft: AlertDraft) -> CrisisAlert:
        alert = await self._alert_store.create(draft)
        logger.warning(
            "CRISIS_ALERT_CREATED",
            extra={
                "alert_id": alert.id,
                "subject_id": alert.subject_id,
                "severity": alert.severity,
                "trigger_type": alert.trigger_type,
                "risk_factor_count": len(alert.risk_factors),
                "detection_latency_ms": round(alert.detection_latency_ms, 3),
            },
        )
        if alert.severity in _IMMEDIATE:
            await self._dispatcher.send_immediate(alert)
        return alert


def _risk_factors(indicators: list[RiskIndicator]) -> list[str]:
    factors: list[str] = []
    for indicator in indicators:
        factors.extend(indicator.matches or (indicator.label,))
    return factors
