# app/schemas/goal_schema.py

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ._base_datetime import NaiveIsoDatetimeModel


# ✅ Request Schemas
class GoalCreateRequest(BaseModel):
    experience_gift_id: str
    empowered_by: Optional[str] = None  # giver's user id
    category: str
    duration: int = Field(..., ge=1)
    duration_unit: Literal["weeks", "months"] = "weeks"
    sessions_per_week: int
    target_hours: int = 0
    target_minutes: int = 0

    @field_validator("duration_unit", mode="before")
    @classmethod
    def _normalize_unit(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def total_weeks(self) -> int:
        # the goal-setting form counts a month as four weeks
        return self.duration if self.duration_unit == "weeks" else self.duration * 4


class LogSessionRequest(BaseModel):
    occurred_at: Optional[datetime] = None  # client wall clock; server local time if omitted


class ApprovalDecisionRequest(BaseModel):
    decision: Literal["approved", "rejected"]
    message: Optional[str] = None


class GoalSuggestionRequest(BaseModel):
    target_count: int
    sessions_per_week: int
    message: Optional[str] = None


class GoalSuggestionReply(BaseModel):
    accept: bool
    message: Optional[str] = None


class GoalHintRequest(BaseModel):
    session: int
    hint: str


# ✅ Response Schemas
class GoalHintOut(BaseModel):
    session: int
    hint: str
    date: datetime


class GoalProgressView(NaiveIsoDatetimeModel):
    overall_percent: int
    weekly_percent: int
    week_start_at: Optional[datetime] = None
    week_end_at: Optional[datetime] = None
    week_dates: List[date] = Field(default_factory=list)
    weekday_labels: List[str] = Field(default_factory=list)
    is_week_overdue: bool = False
    is_approval_overdue: bool = False


class GoalResponse(NaiveIsoDatetimeModel):
    id: str
    user_id: str
    experience_gift_id: str
    empowered_by: Optional[str]
    title: str
    description: str
    category: str

    target_count: int
    current_count: int
    sessions_per_week: int
    weekly_count: int
    weekly_log_dates: List[str]
    week_start_at: Optional[datetime]
    last_session_date: Optional[str]

    duration: int
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    target_hours: int
    target_minutes: int

    is_active: bool
    is_completed: bool
    is_revealed: bool

    approval_status: str
    initial_target_count: Optional[int]
    initial_sessions_per_week: Optional[int]
    suggested_target_count: Optional[int]
    suggested_sessions_per_week: Optional[int]
    approval_requested_at: Optional[datetime]
    approval_deadline: Optional[datetime]
    approval_resolved_at: Optional[datetime]
    giver_action_taken: bool
    giver_message: Optional[str]
    receiver_message: Optional[str]

    hints: List[GoalHintOut]
    created_at: Optional[datetime]
    completed_at: Optional[datetime]
    revealed_at: Optional[datetime]

    progress: GoalProgressView
