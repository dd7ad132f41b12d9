from __future__ import annotations

import asyncio
from collections.abc import Mapping

import pytest
from fastapi.testclient import TestClient

from dispatch_service.core.auth import create_access_token
from dispatch_service.core.config import DispatchServiceSettings
from dispatch_service.core.errors import PersistenceFailure
from dispatch_service.main import create_app
from dispatch_service.models.entities import Driver, DriverStatus
from dispatch_service.services.coordinator import DispatchCoordinator
from dispatch_service.services.credentials import hash_password
from dispatch_service.services.store import Collection, Document, MemoryCollectionStore


class FlakyStore(MemoryCollectionStore):
    """Memory store whose writes fail for chosen keys while ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[Collection] = set()
        self.save_calls: list[tuple[Collection, ...]] = []

    async def save_many(self, collections: Mapping[Collection, Document]) -> None:
        self.save_calls.append(tuple(collections))
        broken = self.failing.intersection(collections)
        if broken:
            raise PersistenceFailure(f"disk full: {sorted(k.value for k in broken)}")
        await super().save_many(collections)


class SlowStore(FlakyStore):
    """Yields to the event loop on every write, like a real database round trip."""

    async def save(self, key: Collection, items: Document) -> None:
        await asyncio.sleep(0.01)
        await super().save(key, items)


def make_driver(driver_id: str, *, status: DriverStatus = DriverStatus.OFF_DUTY, **kwargs) -> Driver:
    fields = {
        "driver_code": f"DRV-{driver_id}",
        "name": f"Driver {driver_id}",
        "phone": "628111111111",
        "username": driver_id,
        "password_hash": hash_password("secret123"),
    }
    fields.update(kwargs)
    return Driver(id=driver_id, status=status, **fields)


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
async def coordinator(store: FlakyStore) -> DispatchCoordinator:
    coordinator = DispatchCoordinator(store)
    await coordinator.load()
    coordinator.state.drivers["drv-x"] = make_driver("drv-x")
    coordinator.state.drivers["drv-y"] = make_driver("drv-y", status=DriverStatus.ON_DUTY)
    return coordinator


@pytest.fixture
async def slow_coordinator() -> DispatchCoordinator:
    coordinator = DispatchCoordinator(SlowStore())
    await coordinator.load()
    coordinator.state.drivers["drv-x"] = make_driver("drv-x")
    coordinator.state.drivers["drv-y"] = make_driver("drv-y", status=DriverStatus.ON_DUTY)
    return coordinator


@pytest.fixture
def app_settings() -> DispatchServiceSettings:
    return DispatchServiceSettings(
        store_backend="memory",
        autosave_interval_seconds=0,
        seed_demo_drivers=True,
        event_publishing_enabled=False,
        jwt_secret_key="test-secret",
        _env_file=None,
    )


@pytest.fixture
def client(app_settings: DispatchServiceSettings):
    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


@pytest.fixture
def auth_header(app_settings: DispatchServiceSettings):
    def build(subject: str, role: str, name: str = "Tester") -> dict[str, str]:
        token = create_access_token(app_settings, subject=subject, role=role, name=name)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def admin_headers(auth_header) -> dict[str, str]:
    return auth_header("admin-001", "admin", "Admin Kurir Kan")
