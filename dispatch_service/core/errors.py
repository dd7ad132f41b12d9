"""Typed failures raised by dispatch operations.

Validation failures are raised before any state is touched.
``PersistenceFailure`` is raised after the in-memory state has been rolled
back to the snapshot taken at the start of the operation.
"""

from __future__ import annotations

from fastapi import status


class DispatchError(Exception):
    """Base class for every failure the operation surface reports."""

    code = "dispatch_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DispatchError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class OrderNotFound(NotFound):
    code = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class DriverNotFound(NotFound):
    code = "driver_not_found"

    def __init__(self, driver_id: str):
        super().__init__(f"Driver {driver_id} not found")
        self.driver_id = driver_id


class NotificationNotFound(NotFound):
    code = "notification_not_found"

    def __init__(self, notification_id: str):
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id


class InvalidTransition(DispatchError):
    """A status change the order or driver lifecycle does not allow."""

    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class DriverHasActiveOrder(DispatchError):
    code = "driver_has_active_order"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, driver_id: str, order_id: str):
        super().__init__(f"Driver {driver_id} still holds order {order_id}")
        self.driver_id = driver_id
        self.order_id = order_id


class DuplicateCredential(DispatchError):
    code = "duplicate_credential"
    status_code = status.HTTP_409_CONFLICT


class AuthenticationFailed(DispatchError):
    code = "authentication_failed"
    status_code = status.HTTP_401_UNAUTHORIZED


class PersistenceFailure(DispatchError):
    code = "persistence_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
