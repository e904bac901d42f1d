# app/controllers/notification_controller.py
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import HTTPException

from ..db.mongo import notifications_collection
from ..models.notification_model import NotificationModel
from ..schemas.notification_schema import NotificationListQuery, NotificationOut

logger = logging.getLogger(__name__)


def _as_oid(v: str) -> ObjectId:
    try:
        return ObjectId(v)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid notification id.")


def _to_out(doc: dict) -> NotificationOut:
    return NotificationOut(
        id=str(doc["_id"]),
        user_id=str(doc["user_id"]),
        type=doc["type"],
        title=doc["title"],
        message=doc.get("message", ""),
        read=bool(doc.get("read", False)),
        clearable=doc.get("clearable", True) is not False,
        data=doc.get("data") or {},
        created_at=doc["created_at"],
    )


async def create_notification(
    user_id: str,
    type: str,
    title: str,
    message: str = "",
    data: Optional[Dict[str, Any]] = None,
    clearable: bool = True,
) -> str:
    note = NotificationModel(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data or {},
        clearable=clearable,
    )
    result = await notifications_collection.insert_one(note.model_dump(exclude={"id"}))
    logger.debug("notification %s (%s) created for %s", result.inserted_id, type, user_id)
    return str(result.inserted_id)


async def list_notifications(user: dict, query: NotificationListQuery) -> List[NotificationOut]:
    filt: Dict[str, Any] = {"user_id": str(user["_id"])}
    if query.unread_only:
        filt["read"] = False
    cursor = (
        notifications_collection.find(filt)
        .sort("created_at", -1)
        .skip(query.skip)
        .limit(query.limit)
    )
    return [_to_out(doc) async for doc in cursor]


async def mark_as_read(user: dict, notification_id: str) -> NotificationOut:
    oid = _as_oid(notification_id)
    owner = str(user["_id"])
    doc = await notifications_collection.find_one({"_id": oid, "user_id": owner})
    if not doc:
        raise HTTPException(status_code=404, detail="Notification not found.")
    await notifications_collection.update_one({"_id": oid}, {"$set": {"read": True}})
    doc["read"] = True
    return _to_out(doc)


async def delete_notification(user: dict, notification_id: str, force: bool = False) -> dict:
    oid = _as_oid(notification_id)
    doc = await notifications_collection.find_one({"_id": oid, "user_id": str(user["_id"])})
    if not doc:
        raise HTTPException(status_code=404, detail="Notification not found.")
    # approval requests stay in the inbox until the giver acts on them
    if not force and doc.get("clearable") is False:
        raise HTTPException(status_code=409, detail="This notification cannot be cleared.")
    await notifications_collection.delete_one({"_id": oid})
    return {"message": "🗑️ Notification deleted."}


async def clear_all_notifications(user: dict) -> dict:
    result = await notifications_collection.delete_many(
        {"user_id": str(user["_id"]), "clearable": {"$ne": False}}
    )
    return {"message": "🧹 Notifications cleared.", "deleted": result.deleted_count}


async def clear_goal_notifications(user_id: str, goal_id: str, type: str) -> None:
    """Drop a non-clearable prompt once it has been answered."""
    await notifications_collection.delete_many(
        {"user_id": user_id, "type": type, "data.goal_id": goal_id}
    )
