"""FastAPI application factory with lifespan startup/shutdown."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from crisis_engine.api.routes import alerts, analyze, health, operations
from crisis_engine.config import load_config
from crisis_engine.engine import CrisisEngine
from crisis_engine.escalation import EscalationScheduler
from crisis_engine.notifications.channels import build_channel
from crisis_engine.notifications.dispatcher import NotificationDispatcher
from crisis_engine.reporting import ReportingAggregator
from crisis_engine.sinks import LogSnapshotSink, MongoSnapshotSink, SnapshotSink
from crisis_engine.store.alerts import AlertStore
from crisis_engine.store.client import get_database, get_motor_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create shared resources on startup; close them on shutdown."""
    config = load_config()

    client = get_motor_client(config.mongo_uri)
    db = get_database(client, config.mongo_db)

    alert_store = AlertStore(db)
    # Ensure indexes exist (idempotent)
    await alert_store.ensure_indexes()

    sink: SnapshotSink
    if config.reporting.store_snapshots:
        mongo_sink = MongoSnapshotSink(db)
        await mongo_sink.ensure_indexes()
        sink = mongo_sink
    else:
        sink = LogSnapshotSink()

    channel = build_channel(
        config.notifications.webhooks, config.notifications.webhook_timeout_seconds
    )
    dispatcher = NotificationDispatcher(alert_store, channel, config.notifications)
    engine = CrisisEngine(alert_store, dispatcher, config)
    scheduler = EscalationScheduler(alert_store, dispatcher, config.escalation, sink=sink)
    aggregator = ReportingAggregator(alert_store, sink, config.reporting)

    await scheduler.start()
    await aggregator.start()

    # Attach to app.state so dependency providers can access them
    app.state.mongo_client = client
    app.state.alert_store = alert_store
    app.state.engine = engine
    app.state.scheduler = scheduler
    app.state.aggregator = aggregator

    logger.info(
        "CRISIS_ENGINE_STARTED",
        extra={
            "wake_interval_seconds": config.escalation.wake_interval_seconds,
            "report_interval_seconds": config.reporting.interval_seconds,
        },
    )

    yield

    await scheduler.stop()
    await aggregator.stop()
    await channel.aclose()
    client.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Crisis Alert Engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(analyze.router)
    app.include_router(alerts.router)
    app.include_router(operations.router)
    return app


app = create_app()
