"""Motor async client setup.

The client is created once at app startup via FastAPI lifespan and stored
on app.state so all routes share the same connection pool. Datetimes come
back timezone-aware (UTC) so they compare cleanly with the engine's clock.
"""

from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase


def get_motor_client(uri: str) -> AsyncIOMotorClient:  # type: ignore[type-arg]
    return AsyncIOMotorClient(uri, tz_aware=True)


def get_database(
    client: AsyncIOMotorClient,  # type: ignore[type-arg]
    db_name: str,
) -> AsyncIOMotorDatabase:  # type: ignore[type-arg]
    return client[db_name]
