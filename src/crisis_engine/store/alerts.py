"""AlertStore: async Motor persistence for the crisis_alerts collection.

Lifecycle transitions are single conditional updates, so concurrent
resolutions and escalation sweeps cannot both win:

    resolve   matches {id, resolved: false}
    escalate  matches {id, resolved: false, escalated: false}

Whichever update lands first flips the flag; the other matches nothing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from crisis_engine.exceptions import AlertPersistenceError
from crisis_engine.model.alert import AlertDraft, CrisisAlert, Severity

logger = logging.getLogger(__name__)

COLLECTION = "crisis_alerts"

_ACTIVE_ORDER = [("severity_rank", DESCENDING), ("created_at", DESCENDING)]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class AlertStore:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:  # type: ignore[type-arg]
        self._col = db[COLLECTION]

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("id", ASCENDING)], unique=True)
        await self._col.create_index(
            [("resolved", ASCENDING), ("escalated", ASCENDING), ("severity", ASCENDING), ("created_at", ASCENDING)]
        )
        await self._col.create_index([("resolved", ASCENDING), *_ACTIVE_ORDER])
        await self._col.create_index([("created_at", DESCENDING)])
        await self._col.create_index([("subject_id", ASCENDING), ("created_at", DESCENDING)])

    async def create(self, draft: AlertDraft, created_at: datetime | None = None) -> CrisisAlert:
        """Assign id and timestamp, persist, and return the stored alert.

        Raises AlertPersistenceError if the write is not acknowledged.
        """
        alert = CrisisAlert.from_draft(draft, created_at=created_at)
        try:
            await self._col.insert_one(alert.model_dump())
        except PyMongoError as exc:
            logger.error(
                "ALERT_PERSIST_FAILED",
                extra={"subject_id": alert.subject_id, "severity": alert.severity, "error": str(exc)},
            )
            raise AlertPersistenceError(
                f"Failed to store {alert.severity} alert", subject_id=alert.subject_id
            ) from exc
        return alert

    async def get_by_id(self, alert_id: str) -> CrisisAlert | None:
        doc = await self._col.find_one({"id": alert_id}, {"_id": 0})
        return CrisisAlert.model_validate(doc) if doc else None

    async def resolve(
        self, alert_id: str, resolved_by: str, now: datetime | None = None
    ) -> bool:
        """Mark an alert resolved. Idempotent: an already-resolved alert returns True.

        Returns False only if no alert with *alert_id* exists.
        """
        result = await self._col.update_one(
            {"id": alert_id, "resolved": False},
            {"$set": {"resolved": True, "resolved_at": now or _utcnow(), "resolved_by": resolved_by}},
        )
        if result.modified_count == 1:
            return True
        return await self._col.count_documents({"id": alert_id}, limit=1) == 1

    async def escalate(self, alert_id: str, now: datetime | None = None) -> bool:
        """Flip escalated to True if the alert is still open and not yet escalated."""
        result = await self._col.update_one(
            {"id": alert_id, "resolved": False, "escalated": False},
            {"$set": {"escalated": True, "escalated_at": now or _utcnow()}},
        )
        return result.modified_count == 1

    async def append_notifications(self, alert_id: str, channels: list[str]) -> None:
        """Record delivered channels; a channel already present is not added twice."""
        if not channels:
            return
        await self._col.update_one(
            {"id": alert_id},
            {"$addToSet": {"notifications_sent": {"$each": channels}}},
        )

    async def list_unresolved_unescalated(
        self,
        older_than: timedelta,
        severity: Severity | None = None,
        now: datetime | None = None,
    ) -> list[CrisisAlert]:
        """Open, never-escalated alerts created more than *older_than* ago."""
        cutoff = (now or _utcnow()) - older_than
        query: dict = {  # type: ignore[type-arg]
            "resolved": False,
            "escalated": False,
            "created_at": {"$lt": cutoff},
        }
        if severity is not None:
            query["severity"] = severity
        cursor = self._col.find(query, {"_id": 0}).sort("created_at", ASCENDING)
        return [CrisisAlert.model_validate(doc) async for doc in cursor]

    async def list_active(self, skip: int = 0, limit: int | None = None) -> list[CrisisAlert]:
        """Unresolved alerts, most severe first, newest first within a tier.

        Every open alert is returned unless the caller pages with *skip*/*limit*.
        """
        cursor = self._col.find({"resolved": False}, {"_id": 0}).sort(_ACTIVE_ORDER).skip(skip)
        if limit is not None:
            cursor = cursor.limit(limit)
        return [CrisisAlert.model_validate(doc) async for doc in cursor]

    async def list_created_since(
        self, since: datetime, until: datetime | None = None
    ) -> list[CrisisAlert]:
        window: dict = {"$gte": since}  # type: ignore[type-arg]
        if until is not None:
            window["$lt"] = until
        cursor = self._col.find({"created_at": window}, {"_id": 0}).sort("created_at", DESCENDING)
        return [CrisisAlert.model_validate(doc) async for doc in cursor]
