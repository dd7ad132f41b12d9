"""Dispatch Service — application lifespan (startup / shutdown hooks)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from dispatch_service.core.config import DispatchServiceSettings
from dispatch_service.core.database import build_engine, build_session_factory
from dispatch_service.services.autosave import start_autosave, stop_autosave
from dispatch_service.services.coordinator import DispatchCoordinator
from dispatch_service.services.notifications import NotificationPublisher
from dispatch_service.services.store import (
    CollectionStore,
    MemoryCollectionStore,
    SqlCollectionStore,
)
from shared.rabbitmq import RabbitMQClient

log = structlog.get_logger()


async def build_store(app_settings: DispatchServiceSettings) -> CollectionStore:
    if app_settings.store_backend == "memory":
        return MemoryCollectionStore()

    engine = build_engine(app_settings)
    store = SqlCollectionStore(engine, build_session_factory(engine))
    if app_settings.db_auto_create:
        await store.create_schema()
    return store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the store and coordinator, start autosave, flush on shutdown."""
    app_settings: DispatchServiceSettings = app.state.settings
    log.info(
        "dispatch_service starting up",
        store_backend=app_settings.store_backend,
        db_url=app_settings.database_url.split("@")[-1],
    )

    store = await build_store(app_settings)

    mq_client: RabbitMQClient | None = None
    publisher = NotificationPublisher()
    if app_settings.event_publishing_enabled:
        mq_client = RabbitMQClient(
            app_settings.rabbitmq_url,
            service_name=app_settings.service_name,
            exchange_name=app_settings.rabbitmq_exchange,
        )
        await mq_client.connect()
        publisher = NotificationPublisher(mq_client.publish_event)

    coordinator = DispatchCoordinator(store, publisher=publisher)
    await coordinator.load()
    if app_settings.seed_demo_drivers:
        await coordinator.seed_demo_drivers()
    app.state.coordinator = coordinator

    autosave = None
    if app_settings.autosave_interval_seconds > 0:
        autosave = start_autosave(coordinator, app_settings.autosave_interval_seconds)

    yield

    log.info("dispatch_service shutting down")
    await stop_autosave(autosave)
    await coordinator.flush_all()
    if mq_client:
        await mq_client.close()
    await store.close()
