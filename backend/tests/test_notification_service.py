import pytest

from conftest import FakeWebSocket
from healthsync.exceptions import NotFound
from healthsync.services.realtime_gateway import EVENT_NOTIFICATION


class TestNotificationService:
    async def test_create_and_dispatch_pushes_persisted_record(self, notifications, gateway):
        socket = FakeWebSocket()
        gateway._register("u1", "conn-1", socket)

        notification = await notifications.create_and_dispatch("u1", "info", "Lab results", "CBC ready", {"a": 1})

        assert socket.events == [EVENT_NOTIFICATION]
        pushed = socket.sent[0]["data"]
        assert pushed["id"] == notification.id
        assert pushed["notificationId"] == notification.id
        assert pushed["title"] == "Lab results"
        assert pushed["read"] is False

    async def test_dispatch_to_offline_user_returns_false(self, notifications):
        notification = await notifications.create("u1", "info", "t", "m")
        assert await notifications.dispatch(notification) is False
        assert [n.id for n in await notifications.list_for_user("u1")] == [notification.id]

    async def test_mark_read_unknown_raises(self, notifications):
        with pytest.raises(NotFound, match="Notification not found"):
            await notifications.mark_read("u1", "missing")

    async def test_delete_other_users_notification_raises(self, notifications):
        notification = await notifications.create("u1", "info", "t", "m")
        with pytest.raises(NotFound):
            await notifications.delete("u2", notification.id)

    async def test_bulk_operations_return_counts(self, notifications):
        for i in range(3):
            await notifications.create("u1", "info", f"t{i}", "m")
        assert await notifications.mark_all_read("u1") == 3
        assert await notifications.mark_all_read("u1") == 0
        assert await notifications.delete_all("u1") == 3
