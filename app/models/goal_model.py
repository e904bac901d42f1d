# app/models/goal_model.py
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

ApprovalStatus = Literal["pending", "approved", "rejected"]


class GoalDocumentError(ValueError):
    """A stored goal document does not have the shape of a Goal."""


class GoalHint(BaseModel):
    session: int
    hint: str
    date: datetime


class GoalModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    user_id: PyObjectId                      # recipient
    experience_gift_id: PyObjectId           # weak back-reference to the redeemed gift
    empowered_by: Optional[PyObjectId] = None  # giver

    title: str = ""
    description: str = ""
    category: str = ""

    # Overall (weeks)
    target_count: int = Field(ge=1)
    current_count: int = Field(default=0, ge=0)

    # Per anchored week
    sessions_per_week: int = Field(ge=1, le=7)
    weekly_count: int = Field(default=0, ge=0)
    weekly_log_dates: List[str] = Field(default_factory=list)  # "YYYY-MM-DD"
    week_start_at: Optional[datetime] = None
    last_session_date: Optional[str] = None  # "YYYY-MM-DD", kept across weeks

    frequency: Literal["weekly"] = "weekly"
    duration: int = 0  # days
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_hours: int = Field(default=0, ge=0)
    target_minutes: int = Field(default=0, ge=0)

    is_active: bool = True
    is_completed: bool = False
    is_revealed: bool = False

    # Approval handshake with the giver
    approval_status: ApprovalStatus = "pending"
    initial_target_count: Optional[int] = None
    initial_sessions_per_week: Optional[int] = None
    suggested_target_count: Optional[int] = None
    suggested_sessions_per_week: Optional[int] = None
    approval_requested_at: Optional[datetime] = None
    approval_deadline: Optional[datetime] = None
    approval_resolved_at: Optional[datetime] = None
    giver_action_taken: bool = False
    giver_message: Optional[str] = None
    receiver_message: Optional[str] = None

    hints: List[GoalHint] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    revealed_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }

    @field_validator("weekly_log_dates")
    @classmethod
    def _iso_date_stamps(cls, v: List[str]) -> List[str]:
        for stamp in v:
            date.fromisoformat(stamp)  # ValueError -> ValidationError
        return v

    @field_validator("last_session_date")
    @classmethod
    def _iso_last_session(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            date.fromisoformat(v)
        return v

    @model_validator(mode="after")
    def _counters_in_range(self):
        if self.weekly_count > self.sessions_per_week:
            raise ValueError("weekly_count exceeds sessions_per_week")
        if self.current_count > self.target_count:
            raise ValueError("current_count exceeds target_count")
        if self.is_completed != (self.current_count == self.target_count):
            raise ValueError("is_completed must match current_count == target_count")
        return self

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "GoalModel":
        """Validate a raw Mongo document; raises GoalDocumentError on any mismatch."""
        if not isinstance(doc, dict):
            raise GoalDocumentError(f"expected a document, got {type(doc).__name__}")
        try:
            return cls.model_validate(doc)
        except ValidationError as e:
            raise GoalDocumentError(f"invalid goal document {doc.get('_id')}: {e}") from e

    def to_document(self) -> Dict[str, Any]:
        """Mongo-ready dict without the id."""
        return self.model_dump(exclude={"id"})
