from dispatch_service.models.entities import NotificationType
from dispatch_service.services import notifications
from dispatch_service.services.notifications import NotificationPublisher
from dispatch_service.services.state import DispatchState


def test_for_user_filters_and_sorts_newest_first():
    state = DispatchState()
    first = notifications.emit(
        state, user_id="u-1", title="A", message="a", type=NotificationType.SYSTEM
    )
    second = notifications.emit(
        state, user_id="u-1", title="B", message="b", type=NotificationType.ORDER_UPDATE
    )
    notifications.emit(state, user_id="u-2", title="C", message="c", type=NotificationType.SYSTEM)
    second.created_at = first.created_at.replace(year=first.created_at.year + 1)
    notifications.mark_read(state, first.id)

    assert [n.id for n in notifications.for_user(state, "u-1")] == [second.id, first.id]
    assert [n.id for n in notifications.for_user(state, "u-1", unread_only=True)] == [second.id]


async def test_publisher_routes_by_notification_type():
    state = DispatchState()
    sent = []

    async def publish(routing_key, body):
        sent.append((routing_key, body["user_id"], body["type"]))

    publisher = NotificationPublisher(publish)
    await publisher.publish(
        [
            notifications.emit(
                state, user_id="u-1", title="A", message="a", type=NotificationType.DRIVER_ASSIGNMENT
            )
        ]
    )

    assert publisher.enabled
    assert sent == [("notification.driver_assignment", "u-1", "driver_assignment")]


async def test_publisher_keeps_going_after_a_failed_send():
    state = DispatchState()
    sent = []

    async def publish(routing_key, body):
        if body["title"] == "boom":
            raise ConnectionError("channel closed")
        sent.append(body["title"])

    batch = [
        notifications.emit(state, user_id="u", title=title, message="", type=NotificationType.SYSTEM)
        for title in ("boom", "ok")
    ]
    await NotificationPublisher(publish).publish(batch)

    assert sent == ["ok"]


async def test_disabled_publisher_is_a_no_op():
    publisher = NotificationPublisher()
    assert not publisher.enabled
    await publisher.publish([])
