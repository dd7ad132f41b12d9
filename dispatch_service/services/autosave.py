"""Periodic flush of every collection, run as a background task."""

from __future__ import annotations

import asyncio

import structlog

from dispatch_service.services.coordinator import DispatchCoordinator

logger = structlog.get_logger()


async def autosave_loop(coordinator: DispatchCoordinator, interval_seconds: float) -> None:
    """Flush on a fixed interval until cancelled."""
    logger.info("autosave_started", interval_seconds=interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        await coordinator.flush_all()


def start_autosave(coordinator: DispatchCoordinator, interval_seconds: float) -> asyncio.Task:
    return asyncio.create_task(autosave_loop(coordinator, interval_seconds), name="autosave")


async def stop_autosave(task: asyncio.Task | None) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("autosave_stopped")
