import asyncio

from dispatch_service.services.autosave import start_autosave, stop_autosave
from dispatch_service.services.store import Collection


async def test_autosave_flushes_until_stopped(coordinator, store):
    await coordinator.create_order(pickup_address="A", delivery_address="B")
    calls_before = len(store.save_calls)

    task = start_autosave(coordinator, 0.01)
    await asyncio.sleep(0.05)
    await stop_autosave(task)

    flushes = store.save_calls[calls_before:]
    assert flushes
    assert all(Collection.DRIVERS in keys for keys in flushes)
    assert task.done()


async def test_autosave_survives_store_failures(coordinator, store):
    store.failing = {Collection.ORDERS}

    task = start_autosave(coordinator, 0.01)
    await asyncio.sleep(0.05)

    assert not task.done()
    await stop_autosave(task)


async def test_stop_autosave_without_task():
    await stop_autosave(None)
