from datetime import datetime
from typing import Any, Dict
from pydantic import BaseModel, Field

from ._base_datetime import NaiveIsoDatetimeModel


class NotificationOut(NaiveIsoDatetimeModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    read: bool
    clearable: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class NotificationListQuery(BaseModel):
    unread_only: bool = False
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=50, ge=1, le=200)


