"""Dispatch coordinator — the operation surface over the in-memory state.

One coordinator owns one ``DispatchState``. Every mutating operation runs
as a unit of work: it takes the coordinator lock, validates, mutates,
persists the touched collections and, should persistence fail, restores
the snapshot taken on entry before re-raising ``PersistenceFailure``.
Notifications are published to the event bus only after a successful save.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import structlog

from dispatch_service.core.errors import (
    AuthenticationFailed,
    DriverHasActiveOrder,
    DriverNotFound,
    DuplicateCredential,
    InvalidTransition,
    NotificationNotFound,
    OrderNotFound,
    PersistenceFailure,
)
from dispatch_service.models.entities import (
    AppSettings,
    Customer,
    Driver,
    DriverStatus,
    Notification,
    Order,
    OrderStatus,
    QueueItem,
    utcnow,
)
from dispatch_service.services import dispatch, lifecycle, notifications
from dispatch_service.services.credentials import (
    hash_password,
    normalize_phone,
    verify_password,
)
from dispatch_service.services.identifiers import (
    generate_driver_code,
    generate_id,
    generate_order_number,
)
from dispatch_service.services.notifications import NotificationPublisher
from dispatch_service.services.state import PERSISTED, DispatchState
from dispatch_service.services.store import Collection, CollectionStore

logger = structlog.get_logger()

GUEST_ID = "guest"

DRIVER_UPDATABLE = frozenset(
    {"name", "phone", "username", "password", "driver_code", "is_admin", "rating", "earnings", "status"}
)

SETTINGS_UPDATABLE = frozenset(AppSettings.model_fields)


class DispatchCoordinator:
    """Owns customers, drivers, orders, queue and notifications."""

    def __init__(
        self,
        store: CollectionStore,
        *,
        publisher: NotificationPublisher | None = None,
        state: DispatchState | None = None,
    ) -> None:
        self._store = store
        self._publisher = publisher or NotificationPublisher()
        self._state = state or DispatchState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def store(self) -> CollectionStore:
        return self._store

    # ── Loading / flushing ─────────────────────

    async def load(self) -> None:
        """Replace in-memory state with the stored collections."""
        documents = {key: await self._store.load(key) for key in PERSISTED}
        async with self._lock:
            self._state = DispatchState.from_documents(documents)
            if not documents[Collection.SETTINGS]:
                await self._store.save(Collection.SETTINGS, self._state.document(Collection.SETTINGS))
        logger.info(
            "dispatch_state_loaded",
            orders=len(self._state.orders),
            drivers=len(self._state.drivers),
            queue=len(self._state.queue),
        )

    async def flush_all(self) -> bool:
        """Save every collection; failures are logged and reported as False.

        The lock is held across the write so a flush never lands on top of a
        newer unit of work.
        """
        async with self._lock:
            documents = {key: self._state.document(key) for key in PERSISTED}
            try:
                await self._store.save_many(documents)
            except PersistenceFailure as exc:
                logger.error("autosave_failed", error=exc.message)
                return False
        logger.info("autosave_completed", collections=len(documents))
        return True

    async def create_backup(self) -> datetime:
        """Write a timestamped snapshot of all collections to ``last_backup``."""
        taken_at = utcnow()
        async with self._lock:
            data = {key.value: self._state.document(key) for key in PERSISTED}
            await self._store.save(
                Collection.LAST_BACKUP, {"timestamp": taken_at.isoformat(), "data": data}
            )
        logger.info("backup_created", timestamp=taken_at.isoformat())
        return taken_at

    async def seed_demo_drivers(self) -> int:
        """Create the admin and demo drivers when no driver exists yet."""
        seeds = (
            ("admin-001", "ADMIN001", "Admin Kurir Kan", "628123456789", "admin", "admin123", True, 5.0),
            ("driver-001", "DRV001", "Budi Santoso", "628111111111", "budi", "budi123", False, 4.8),
            ("driver-002", "DRV002", "Siti Rahayu", "628222222222", "siti", "siti123", False, 4.9),
        )
        async with self._unit_of_work(Collection.DRIVERS):
            if self._state.drivers:
                return 0
            for driver_id, code, name, phone, username, password, is_admin, rating in seeds:
                self._state.drivers[driver_id] = Driver(
                    id=driver_id,
                    driver_code=code,
                    name=name,
                    phone=phone,
                    username=username,
                    password_hash=hash_password(password),
                    is_admin=is_admin,
                    rating=rating,
                )
        logger.info("seed_drivers_created", count=len(seeds))
        return len(seeds)

    # ── Orders ─────────────────────────────────

    async def create_order(
        self,
        *,
        pickup_address: str,
        delivery_address: str,
        customer_id: str | None = None,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        **payload: Any,
    ) -> Order:
        """Create a pending order and queue it.

        Both addresses must be non-empty; the request schema enforces it.
        """
        keys = (Collection.ORDERS, Collection.QUEUE, Collection.NOTIFICATIONS)
        async with self._unit_of_work(*keys) as emitted:
            customer = self._state.customers.get(customer_id) if customer_id else None
            taken = {order.order_number for order in self._state.orders.values()}
            order = lifecycle.build_order(
                order_id=generate_id(),
                order_number=generate_order_number(taken),
                customer_id=customer_id or GUEST_ID,
                customer_name=customer_name or (customer.name if customer else "Guest"),
                customer_phone=customer_phone or (customer.phone if customer else ""),
                pickup_address=pickup_address,
                delivery_address=delivery_address,
                **{k: v for k, v in payload.items() if v is not None},
            )
            self._state.orders[order.id] = order
            dispatch.enqueue(self._state, order, now=order.created_at)
            emitted.append(notifications.order_created(self._state, order))

        logger.info("order_created", order_id=order.id, order_number=order.order_number)
        return order

    async def advance_order_status(
        self,
        order_id: str,
        status: OrderStatus | str,
        note: str | None = None,
    ) -> Order:
        """Move an order along its lifecycle.

        Cancelling a pending order drops its queue ticket; reaching a
        terminal status frees the assigned driver.
        """
        target = _order_status(status)
        keys = (Collection.ORDERS, Collection.DRIVERS, Collection.QUEUE, Collection.NOTIFICATIONS)
        async with self._unit_of_work(*keys) as emitted:
            order = self._require_order(order_id)
            lifecycle.advance(order, target, note)
            if target == OrderStatus.CANCELLED:
                dispatch.dequeue(self._state, order.id)
            if order.is_terminal:
                dispatch.release_driver(self._state, order)
            emitted.append(notifications.order_updated(self._state, order, target))
        return order

    async def assign_order_to_driver(self, order_id: str, driver_id: str) -> Order:
        keys = (Collection.ORDERS, Collection.DRIVERS, Collection.QUEUE, Collection.NOTIFICATIONS)
        async with self._unit_of_work(*keys) as emitted:
            order, driver = dispatch.assign(self._state, order_id, driver_id)
            emitted.append(notifications.driver_assigned(self._state, order, driver.name))
        return order

    def get_order(self, order_id: str) -> Order:
        return self._require_order(order_id)

    def list_orders(
        self,
        *,
        customer_id: str | None = None,
        driver_id: str | None = None,
        status: OrderStatus | None = None,
        active_only: bool = False,
    ) -> list[Order]:
        """Newest first."""
        orders = [
            order
            for order in self._state.orders.values()
            if (customer_id is None or order.customer_id == customer_id)
            and (driver_id is None or order.driver_id == driver_id)
            and (status is None or order.status == status)
            and not (active_only and order.is_terminal)
        ]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def driver_history(self, driver_id: str) -> list[Order]:
        self._require_driver(driver_id)
        return self.list_orders(driver_id=driver_id, status=OrderStatus.DELIVERED)

    def queue(self) -> list[QueueItem]:
        return dispatch.ordered_queue(self._state)

    def next_in_queue(self) -> QueueItem | None:
        return dispatch.next_in_queue(self._state)

    # ── Drivers ────────────────────────────────

    async def add_driver(
        self,
        *,
        name: str,
        phone: str,
        username: str,
        password: str,
        driver_code: str | None = None,
        is_admin: bool = False,
        rating: float = 5.0,
    ) -> Driver:
        normalized = normalize_phone(phone)
        async with self._unit_of_work(Collection.DRIVERS):
            self._ensure_username_free(username)
            self._ensure_driver_phone_free(normalized)
            driver = Driver(
                id=generate_id(),
                driver_code=driver_code or generate_driver_code(),
                name=name,
                phone=normalized,
                username=username,
                password_hash=hash_password(password),
                is_admin=is_admin,
                rating=rating,
                status=DriverStatus.OFF_DUTY,
            )
            self._state.drivers[driver.id] = driver
        logger.info("driver_added", driver_id=driver.id, username=username)
        return driver

    async def update_driver(self, driver_id: str, changes: Mapping[str, Any]) -> Driver:
        """Apply a partial update; ``status`` follows the duty-toggle rules."""
        unknown = set(changes) - DRIVER_UPDATABLE
        if unknown:
            raise InvalidTransition(f"Driver fields cannot be changed directly: {sorted(unknown)}")

        async with self._unit_of_work(Collection.DRIVERS):
            driver = self._require_driver(driver_id)
            if "username" in changes and changes["username"] != driver.username:
                self._ensure_username_free(changes["username"])
            if "phone" in changes and normalize_phone(changes["phone"]) != driver.phone:
                self._ensure_driver_phone_free(normalize_phone(changes["phone"]))
            if "status" in changes:
                dispatch.set_driver_duty(self._state, driver_id, _driver_status(changes["status"]))

            for field, value in changes.items():
                if field == "status":
                    continue
                if field == "password":
                    driver.password_hash = hash_password(value)
                elif field == "phone":
                    driver.phone = normalize_phone(value)
                else:
                    setattr(driver, field, value)
        logger.info("driver_updated", driver_id=driver_id, fields=sorted(changes))
        return driver

    async def set_driver_duty(self, driver_id: str, status: DriverStatus | str) -> Driver:
        async with self._unit_of_work(Collection.DRIVERS):
            driver = dispatch.set_driver_duty(self._state, driver_id, _driver_status(status))
        return driver

    async def delete_driver(self, driver_id: str) -> None:
        """Remove a driver; refused while they hold an unfinished order."""
        async with self._unit_of_work(Collection.DRIVERS):
            driver = self._require_driver(driver_id)
            current = self._state.orders.get(driver.current_order or "")
            if current is not None and not current.is_terminal:
                raise DriverHasActiveOrder(driver_id, current.id)
            del self._state.drivers[driver_id]
        logger.info("driver_deleted", driver_id=driver_id)

    def get_driver(self, driver_id: str) -> Driver:
        return self._require_driver(driver_id)

    def list_drivers(self, status: DriverStatus | None = None) -> list[Driver]:
        return [d for d in self._state.drivers.values() if status is None or d.status == status]

    # ── Customers / authentication ─────────────

    async def register_customer(self, *, name: str, phone: str, password: str) -> Customer:
        normalized = normalize_phone(phone)
        async with self._unit_of_work(Collection.CUSTOMERS):
            if any(c.phone == normalized for c in self._state.customers.values()):
                raise DuplicateCredential("Phone number is already registered")
            customer = Customer(
                id=generate_id(),
                phone=normalized,
                name=name,
                password_hash=hash_password(password),
            )
            self._state.customers[customer.id] = customer
        logger.info("customer_registered", customer_id=customer.id)
        return customer

    async def login_customer(self, *, phone: str, password: str) -> Customer:
        normalized = normalize_phone(phone)
        async with self._unit_of_work(Collection.CUSTOMERS):
            customer = next(
                (c for c in self._state.customers.values() if c.phone == normalized),
                None,
            )
            if customer is None or not verify_password(password, customer.password_hash):
                raise AuthenticationFailed("Invalid phone number or password")
            customer.last_login = utcnow()
        return customer

    async def login_driver(self, *, username: str, password: str) -> Driver:
        async with self._unit_of_work(Collection.DRIVERS):
            driver = next(
                (d for d in self._state.drivers.values() if d.username == username),
                None,
            )
            if driver is None or not verify_password(password, driver.password_hash):
                raise AuthenticationFailed("Invalid username or password")
            driver.last_login = utcnow()
        return driver

    # ── Notifications ──────────────────────────

    async def mark_notification_read(self, notification_id: str) -> Notification:
        async with self._unit_of_work(Collection.NOTIFICATIONS):
            notification = notifications.mark_read(self._state, notification_id)
        return notification

    def get_notification(self, notification_id: str) -> Notification:
        notification = self._state.notifications.get(notification_id)
        if notification is None:
            raise NotificationNotFound(notification_id)
        return notification

    def notifications_for(self, user_id: str, *, unread_only: bool = False) -> list[Notification]:
        return notifications.for_user(self._state, user_id, unread_only=unread_only)

    # ── Settings / stats ───────────────────────

    def get_settings(self) -> AppSettings:
        return self._state.settings

    async def update_settings(self, changes: Mapping[str, Any]) -> AppSettings:
        unknown = set(changes) - SETTINGS_UPDATABLE
        if unknown:
            raise InvalidTransition(f"Unknown settings: {sorted(unknown)}")
        async with self._unit_of_work(Collection.SETTINGS):
            merged = self._state.settings.model_dump() | dict(changes)
            self._state.settings = AppSettings.model_validate(merged)
        return self._state.settings

    def dashboard_stats(self, *, now: datetime | None = None) -> dict[str, Any]:
        today = (now or utcnow()).date()
        orders = list(self._state.orders.values())
        todays = [o for o in orders if o.created_at.date() == today]
        return {
            "on_duty_drivers": len(self.list_drivers(DriverStatus.ON_DUTY)),
            "busy_drivers": len(self.list_drivers(DriverStatus.BUSY)),
            "active_orders": sum(1 for o in orders if not o.is_terminal),
            "today_orders": len(todays),
            "today_revenue": sum(o.price for o in todays),
            "queue_length": len(self._state.queue),
        }

    # ── Internals ──────────────────────────────

    @asynccontextmanager
    async def _unit_of_work(self, *keys: Collection) -> AsyncIterator[list[Notification]]:
        emitted: list[Notification] = []
        async with self._lock:
            snapshot = self._state.snapshot(keys)
            try:
                yield emitted
            except Exception:
                self._state.restore(snapshot)
                raise
            await self._persist(keys, snapshot)
        await self._publisher.publish(emitted)

    async def _persist(self, keys: tuple[Collection, ...], snapshot: dict) -> None:
        try:
            await self._store.save_many({key: self._state.document(key) for key in keys})
        except PersistenceFailure:
            self._state.restore(snapshot)
            logger.error("persistence_failed", keys=[k.value for k in keys], rolled_back=True)
            try:
                await self._store.save_many({key: self._state.document(key) for key in keys})
            except PersistenceFailure:
                # Stored and in-memory views may now differ until the next autosave
                logger.error("persistence_compensation_failed", keys=[k.value for k in keys])
            raise

    def _require_order(self, order_id: str) -> Order:
        order = self._state.orders.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _require_driver(self, driver_id: str) -> Driver:
        driver = self._state.drivers.get(driver_id)
        if driver is None:
            raise DriverNotFound(driver_id)
        return driver

    def _ensure_username_free(self, username: str) -> None:
        if any(d.username == username for d in self._state.drivers.values()):
            raise DuplicateCredential(f"Username '{username}' is already taken")

    def _ensure_driver_phone_free(self, phone: str) -> None:
        if any(d.phone == phone for d in self._state.drivers.values()):
            raise DuplicateCredential(f"Phone number {phone} is already registered to a driver")


def _order_status(value: OrderStatus | str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidTransition(f"Unknown order status: {value}") from None


def _driver_status(value: DriverStatus | str) -> DriverStatus:
    try:
        return DriverStatus(value)
    except ValueError:
        raise InvalidTransition(f"Unknown driver status: {value}") from None
