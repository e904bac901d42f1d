from fastapi import APIRouter, Depends
from typing import Dict, List

from ..schemas.notification_schema import NotificationListQuery, NotificationOut
from ..controllers import notification_controller
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationOut], summary="My notifications, newest first")
async def list_notifications_route(
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50,
    user: Dict = Depends(get_current_user),
):
    query = NotificationListQuery(unread_only=unread_only, skip=skip, limit=limit)
    return await notification_controller.list_notifications(user, query)


# static path before /{notification_id}
@router.delete("/clear", summary="Clear all clearable notifications")
async def clear_all_route(user: Dict = Depends(get_current_user)):
    return await notification_controller.clear_all_notifications(user)


@router.post("/{notification_id}/read", response_model=NotificationOut, summary="Mark as read")
async def mark_read_route(notification_id: str, user: Dict = Depends(get_current_user)):
    return await notification_controller.mark_as_read(user, notification_id)


@router.delete("/{notification_id}", summary="Delete one notification")
async def delete_notification_route(
    notification_id: str, force: bool = False, user: Dict = Depends(get_current_user)
):
    return await notification_controller.delete_notification(user, notification_id, force)
