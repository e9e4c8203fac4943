from datetime import datetime
from typing import Any, Optional

from healthsync.schemas.base import CamelModel


class NotificationCreate(CamelModel):
    user_id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    data: dict[str, Any] = {}


class NotificationResponse(CamelModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    timestamp: Optional[datetime] = None
    read: bool = False
    data: dict[str, Any] = {}


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]


class SuccessResponse(CamelModel):
    success: bool = True


class CountResponse(SuccessResponse):
    count: int


class PatientNotificationDeleteResponse(SuccessResponse):
    deleted: bool
