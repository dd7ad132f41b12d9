"""In-memory collections owned by one coordinator instance."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import TypeAdapter

from dispatch_service.models.entities import (
    AppSettings,
    Customer,
    Driver,
    Notification,
    Order,
    QueueItem,
)
from dispatch_service.services.store import Collection, Document

_customers = TypeAdapter(list[Customer])
_drivers = TypeAdapter(list[Driver])
_orders = TypeAdapter(list[Order])
_queue = TypeAdapter(list[QueueItem])
_notifications = TypeAdapter(list[Notification])


@dataclass
class DispatchState:
    customers: dict[str, Customer] = field(default_factory=dict)
    drivers: dict[str, Driver] = field(default_factory=dict)
    orders: dict[str, Order] = field(default_factory=dict)
    queue: list[QueueItem] = field(default_factory=list)
    notifications: dict[str, Notification] = field(default_factory=dict)
    settings: AppSettings = field(default_factory=AppSettings)

    @classmethod
    def from_documents(cls, documents: dict[Collection, Document]) -> DispatchState:
        """Rebuild state from raw store documents (missing keys are empty)."""
        settings_doc = documents.get(Collection.SETTINGS) or None
        return cls(
            customers=_by_id(_customers.validate_python(documents.get(Collection.CUSTOMERS) or [])),
            drivers=_by_id(_drivers.validate_python(documents.get(Collection.DRIVERS) or [])),
            orders=_by_id(_orders.validate_python(documents.get(Collection.ORDERS) or [])),
            queue=_queue.validate_python(documents.get(Collection.QUEUE) or []),
            notifications=_by_id(
                _notifications.validate_python(documents.get(Collection.NOTIFICATIONS) or [])
            ),
            settings=AppSettings.model_validate(settings_doc) if settings_doc else AppSettings(),
        )

    def document(self, key: Collection) -> Document:
        """JSON-ready document for one collection."""
        if key == Collection.CUSTOMERS:
            return _customers.dump_python(list(self.customers.values()), mode="json")
        if key == Collection.DRIVERS:
            return _drivers.dump_python(list(self.drivers.values()), mode="json")
        if key == Collection.ORDERS:
            return _orders.dump_python(list(self.orders.values()), mode="json")
        if key == Collection.QUEUE:
            return _queue.dump_python(self.queue, mode="json")
        if key == Collection.NOTIFICATIONS:
            return _notifications.dump_python(list(self.notifications.values()), mode="json")
        if key == Collection.SETTINGS:
            return self.settings.model_dump(mode="json")
        raise KeyError(key)

    def snapshot(self, keys: Iterable[Collection]) -> dict[Collection, Any]:
        """Deep copies of the given collections for rollback."""
        snap: dict[Collection, Any] = {}
        for key in keys:
            value = getattr(self, key.value)
            if isinstance(value, dict):
                snap[key] = {k: v.model_copy(deep=True) for k, v in value.items()}
            elif isinstance(value, list):
                snap[key] = [item.model_copy(deep=True) for item in value]
            else:
                snap[key] = value.model_copy(deep=True)
        return snap

    def restore(self, snap: dict[Collection, Any]) -> None:
        for key, value in snap.items():
            setattr(self, key.value, value)


PERSISTED = (
    Collection.CUSTOMERS,
    Collection.DRIVERS,
    Collection.ORDERS,
    Collection.QUEUE,
    Collection.NOTIFICATIONS,
    Collection.SETTINGS,
)


def _by_id(items: list) -> dict:
    return {item.id: item for item in items}
