from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import utcnow_naive

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]


class NotificationModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    user_id: PyObjectId  # who sees it
    type: str            # e.g. goal_approval_request, goal_completed
    title: str
    message: str = ""
    read: bool = False
    clearable: bool = True  # approval requests stay until acted on
    data: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=utcnow_naive)

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }
