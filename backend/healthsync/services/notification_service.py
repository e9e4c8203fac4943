"""Durable notification persistence plus best-effort live push."""

from typing import Optional

import structlog

from healthsync.exceptions import NotFound
from healthsync.records import PATIENT_ASSIGNED, NotificationRecord
from healthsync.services.realtime_gateway import EVENT_NOTIFICATION, RealtimeGateway
from healthsync.stores.base import NotificationStore

logger = structlog.get_logger(__name__)


def serialize_notification(notification: NotificationRecord) -> dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "timestamp": notification.timestamp,
        "read": notification.read,
        "data": notification.data,
    }


class NotificationService:
    def __init__(self, store: NotificationStore, gateway: RealtimeGateway):
        self.store = store
        self.gateway = gateway

    async def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        data: Optional[dict] = None,
    ) -> NotificationRecord:
        """Persist a notification. The write completes before any push is attempted."""
        notification = await self.store.create(user_id, type, title, message, data)
        logger.info("notification_created", notification_id=notification.id, user_id=user_id, type=type)
        return notification

    async def dispatch(
        self,
        notification: NotificationRecord,
        event: str = EVENT_NOTIFICATION,
        payload: Optional[dict] = None,
    ) -> bool:
        """Push to the recipient if connected. Offline recipients pick it up from ``list_for_user``."""
        body = dict(payload) if payload is not None else serialize_notification(notification)
        body.setdefault("notificationId", notification.id)
        delivered = await self.gateway.send(notification.user_id, event, body)
        logger.info(
            "notification_dispatched" if delivered else "notification_recipient_offline",
            notification_id=notification.id,
            user_id=notification.user_id,
            socket_event=event,
        )
        return delivered

    async def create_and_dispatch(self, user_id, type, title, message, data=None) -> NotificationRecord:
        notification = await self.create(user_id, type, title, message, data)
        await self.dispatch(notification)
        return notification

    async def list_for_user(self, user_id: str, limit: int = 100) -> list[NotificationRecord]:
        return await self.store.list_for_user(user_id, limit=limit)

    async def mark_read(self, user_id: str, notification_id: str) -> None:
        if not await self.store.mark_read(user_id, notification_id):
            raise NotFound("Notification not found")

    async def mark_all_read(self, user_id: str) -> int:
        return await self.store.mark_all_read(user_id)

    async def delete(self, user_id: str, notification_id: str) -> None:
        if not await self.store.delete(user_id, notification_id):
            raise NotFound("Notification not found")

    async def delete_all(self, user_id: str) -> int:
        return await self.store.delete_all(user_id)

    async def delete_by_patient(self, user_id: str, patient_id: str, type: str = PATIENT_ASSIGNED) -> bool:
        deleted = await self.store.delete_by_patient(user_id, patient_id, type)
        if deleted:
            logger.info("patient_notification_deleted", user_id=user_id, patient_id=patient_id)
        return deleted
