"""Snapshot sinks: where the periodic actors publish their records."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from motor.motor_asyncio import AsyncIOMotorDatabase

from crisis_engine.model.snapshot import Snapshot

logger = logging.getLogger(__name__)

COLLECTION = "crisis_reports"


class SnapshotSink(ABC):
    @abstractmethod
    async def publish(self, snapshot: Snapshot) -> None:
        ...


class LogSnapshotSink(SnapshotSink):
    async def publish(self, snapshot: Snapshot) -> None:
        logger.info(snapshot.kind.upper(), extra=snapshot.model_dump(mode="json"))


class MongoSnapshotSink(SnapshotSink):
    """Stores each snapshot as a row, and logs it too."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:  # type: ignore[type-arg]
        self._col = db[COLLECTION]
        self._log = LogSnapshotSink()

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("kind", 1), ("generated_at", -1)])

    async def publish(self, snapshot: Snapshot) -> None:
        await self._log.publish(snapshot)
        await self._col.insert_one(snapshot.model_dump())
