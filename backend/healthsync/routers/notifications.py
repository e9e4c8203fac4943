from fastapi import APIRouter, Depends

from healthsync.auth import get_current_user, UserPrincipal
from healthsync.dependencies import get_notification_service
from healthsync.exceptions import ValidationError
from healthsync.records import PATIENT_ASSIGNED
from healthsync.schemas.notification import (
    CountResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    PatientNotificationDeleteResponse,
    SuccessResponse,
)
from healthsync.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    """Newest first, at most 100."""
    items = await notifications.list_for_user(current_user.id, limit=100)
    return NotificationListResponse(notifications=[NotificationResponse.model_validate(n) for n in items])


@router.post("", response_model=NotificationResponse)
async def create_notification(
    data: NotificationCreate,
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    if not data.user_id or not data.type or not data.title or not data.message:
        raise ValidationError("Missing required fields")
    notification = await notifications.create_and_dispatch(
        data.user_id, data.type, data.title, data.message, data.data
    )
    return NotificationResponse.model_validate(notification)


@router.patch("/mark-all-read", response_model=CountResponse)
async def mark_all_read(
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    count = await notifications.mark_all_read(current_user.id)
    return CountResponse(count=count)


@router.patch("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(
    notification_id: str,
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    await notifications.mark_read(current_user.id, notification_id)
    return SuccessResponse()


@router.delete("/patient/{patient_id}", response_model=PatientNotificationDeleteResponse)
async def delete_patient_notification(
    patient_id: str,
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    deleted = await notifications.delete_by_patient(current_user.id, patient_id, PATIENT_ASSIGNED)
    return PatientNotificationDeleteResponse(deleted=deleted)


@router.delete("/{notification_id}", response_model=SuccessResponse)
async def delete_notification(
    notification_id: str,
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    await notifications.delete(current_user.id, notification_id)
    return SuccessResponse()


@router.delete("", response_model=CountResponse)
async def delete_all_notifications(
    notifications: NotificationService = Depends(get_notification_service),
    current_user: UserPrincipal = Depends(get_current_user),
):
    count = await notifications.delete_all(current_user.id)
    return CountResponse(count=count)
