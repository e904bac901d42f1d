# app/controllers/goal_controller.py
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import HTTPException

from ..db.mongo import goals_collection, users_collection
from ..models.goal_model import GoalDocumentError, GoalModel
from ..schemas.goal_schema import (
    ApprovalDecisionRequest,
    GoalCreateRequest,
    GoalHintRequest,
    GoalProgressView,
    GoalResponse,
    GoalSuggestionReply,
    GoalSuggestionRequest,
    LogSessionRequest,
)
from ..services import goal_tracker, notify
from ..services.goal_tracker import (
    ApprovalAlreadyResolvedError,
    DuplicateSessionError,
    GoalTrackerError,
    GoalValidationError,
    InvalidStateError,
)
from ..utils.datetime_utils import now_local, to_wall_clock, utcnow_naive
from .notification_controller import clear_goal_notifications

logger = logging.getLogger(__name__)

# Fields the tracker may change; everything else is fixed at creation
_MUTABLE_FIELDS = (
    "target_count", "current_count", "sessions_per_week", "weekly_count",
    "weekly_log_dates", "week_start_at", "last_session_date", "duration",
    "end_date", "description", "is_active", "is_completed", "is_revealed",
    "completed_at", "revealed_at",
    "approval_status", "suggested_target_count", "suggested_sessions_per_week",
    "approval_resolved_at", "giver_action_taken", "giver_message", "receiver_message",
    "hints",
)

_STATUS_BY_ERROR = (
    (DuplicateSessionError, 409),
    (InvalidStateError, 409),
    (ApprovalAlreadyResolvedError, 409),
    (GoalValidationError, 422),
)


# -----------------------------
# Helpers
# -----------------------------
def _as_oid(v: str) -> ObjectId:
    try:
        return ObjectId(v)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid goal id.")


def _http_error(err: GoalTrackerError) -> HTTPException:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(err, cls):
            return HTTPException(status_code=status, detail=str(err))
    return HTTPException(status_code=400, detail=str(err))


async def _user_name(user_id: Optional[str]) -> str:
    if not user_id or not ObjectId.is_valid(user_id):
        return "Someone"
    doc = await users_collection.find_one({"_id": ObjectId(user_id)}, {"name": 1})
    return (doc or {}).get("name") or "Someone"


async def _load_goal(goal_id: str) -> GoalModel:
    doc = await goals_collection.find_one({"_id": _as_oid(goal_id)})
    if not doc:
        raise HTTPException(status_code=404, detail="❌ Goal not found.")
    try:
        return GoalModel.from_document(doc)
    except GoalDocumentError:
        logger.exception("goal %s failed validation", goal_id)
        raise HTTPException(status_code=500, detail="Stored goal is corrupt.")


def _require_owner(goal: GoalModel, user: dict) -> None:
    if goal.user_id != str(user["_id"]):
        raise HTTPException(status_code=403, detail="Only the goal owner can do this.")


def _require_giver(goal: GoalModel, user: dict) -> None:
    if not goal.empowered_by or goal.empowered_by != str(user["_id"]):
        raise HTTPException(status_code=403, detail="Only the gift giver can do this.")


async def _save(before: GoalModel, after: GoalModel) -> None:
    changes: Dict[str, Any] = {}
    dumped = after.model_dump(include=set(_MUTABLE_FIELDS))
    previous = before.model_dump(include=set(_MUTABLE_FIELDS))
    for field in _MUTABLE_FIELDS:
        if dumped[field] != previous[field]:
            changes[field] = dumped[field]
    changes["updated_at"] = utcnow_naive()
    await goals_collection.update_one({"_id": _as_oid(before.id)}, {"$set": changes})


def _progress(goal: GoalModel, now=None) -> GoalProgressView:
    now = now or now_local()
    window = goal_tracker.week_window(goal)
    view = GoalProgressView(
        overall_percent=goal_tracker.overall_progress(goal),
        weekly_percent=goal_tracker.weekly_progress(goal),
        is_week_overdue=goal_tracker.is_week_overdue(goal, now),
        is_approval_overdue=goal_tracker.is_approval_overdue(goal, now),
    )
    if window:
        view.week_start_at, view.week_end_at = window
        view.week_dates = goal_tracker.anchored_week_dates(window[0])
        view.weekday_labels = goal_tracker.ordered_weekdays_from(window[0])
    return view


def _to_response(goal: GoalModel) -> GoalResponse:
    body = goal.model_dump()
    body["id"] = str(goal.id)
    body["progress"] = _progress(goal)
    return GoalResponse(**body)


# -----------------------------
# Goals
# -----------------------------
async def create_goal(user: dict, data: GoalCreateRequest) -> GoalResponse:
    recipient_id = str(user["_id"])
    try:
        goal = goal_tracker.new_goal(
            user_id=recipient_id,
            experience_gift_id=data.experience_gift_id,
            empowered_by=data.empowered_by,
            category=data.category,
            target_count=data.total_weeks,
            sessions_per_week=data.sessions_per_week,
            target_hours=data.target_hours,
            target_minutes=data.target_minutes,
        )
    except GoalTrackerError as e:
        raise _http_error(e)

    doc = goal.to_document()
    doc["updated_at"] = utcnow_naive()
    result = await goals_collection.insert_one(doc)
    goal = goal.model_copy(update={"id": str(result.inserted_id)})
    logger.info("goal %s created for %s, awaiting approval", goal.id, recipient_id)

    recipient_name = await _user_name(recipient_id)
    notify.notify_user_bg(
        goal.empowered_by,
        "goal_approval_request",
        f"🎯 {recipient_name} set a goal",
        f"Goal: {goal.description}",
        {
            "goal_id": goal.id,
            "gift_id": goal.experience_gift_id,
            "giver_id": goal.empowered_by,
            "recipient_id": recipient_id,
            "initial_target_count": goal.initial_target_count,
            "initial_sessions_per_week": goal.initial_sessions_per_week,
        },
        clearable=False,
    )
    return _to_response(goal)


async def list_goals(user: dict) -> List[GoalResponse]:
    cursor = goals_collection.find({"user_id": str(user["_id"])}).sort("created_at", -1)
    goals = []
    async for doc in cursor:
        try:
            goals.append(_to_response(GoalModel.from_document(doc)))
        except GoalDocumentError:
            logger.exception("skipping corrupt goal %s", doc.get("_id"))
    return goals


async def get_goal(goal_id: str, user: dict) -> GoalResponse:
    goal = await _load_goal(goal_id)
    me = str(user["_id"])
    if me not in (goal.user_id, goal.empowered_by):
        raise HTTPException(status_code=403, detail="Not your goal.")
    return _to_response(goal)


# -----------------------------
# Sessions
# -----------------------------
async def log_session(goal_id: str, user: dict, data: LogSessionRequest) -> GoalResponse:
    goal = await _load_goal(goal_id)
    _require_owner(goal, user)
    try:
        updated = goal_tracker.log_session(goal, to_wall_clock(data.occurred_at))
    except GoalTrackerError as e:
        logger.info("session on goal %s rejected: %s", goal_id, e)
        raise _http_error(e)

    await _save(goal, updated)

    if updated.current_count > goal.current_count:
        logger.info("goal %s: week %d of %d done", goal_id, updated.current_count, updated.target_count)
    if updated.is_completed:
        data_out = {"goal_id": updated.id, "gift_id": updated.experience_gift_id}
        notify.notify_user_bg(
            updated.user_id,
            "goal_completed",
            "🎉 Goal completed!",
            "Your experience is ready to be revealed.",
            data_out,
        )
        recipient_name = await _user_name(updated.user_id)
        notify.notify_user_bg(
            updated.empowered_by,
            "goal_completed",
            f"🎉 {recipient_name} completed their goal",
            updated.title,
            data_out,
        )
    return _to_response(updated)


# -----------------------------
# Approval handshake
# -----------------------------
async def resolve_approval(goal_id: str, user: dict, data: ApprovalDecisionRequest) -> GoalResponse:
    goal = await _load_goal(goal_id)
    _require_giver(goal, user)
    try:
        updated = goal_tracker.resolve_approval(goal, data.decision, data.message)
    except GoalTrackerError as e:
        raise _http_error(e)

    await _save(goal, updated)
    await clear_goal_notifications(str(user["_id"]), str(goal.id), "goal_approval_request")

    giver_name = await _user_name(goal.empowered_by)
    if data.decision == "approved":
        title = "✅ Your goal has been approved!"
        message = data.message or f"{giver_name} approved your goal. You can now start your sessions!"
    else:
        title = "❌ Your goal was not approved"
        message = data.message or f"{giver_name} declined this goal."
    notify.notify_user_bg(
        updated.user_id,
        "goal_approval_response",
        title,
        message,
        {"goal_id": updated.id, "giver_id": updated.empowered_by, "decision": data.decision},
    )
    return _to_response(updated)


async def suggest_change(goal_id: str, user: dict, data: GoalSuggestionRequest) -> GoalResponse:
    goal = await _load_goal(goal_id)
    _require_giver(goal, user)
    try:
        updated = goal_tracker.suggest_goal_change(
            goal, data.target_count, data.sessions_per_week, data.message
        )
    except GoalTrackerError as e:
        raise _http_error(e)

    await _save(goal, updated)
    await clear_goal_notifications(str(user["_id"]), str(goal.id), "goal_approval_request")

    giver_name = await _user_name(goal.empowered_by)
    notify.notify_user_bg(
        updated.user_id,
        "goal_change_suggested",
        f"📝 {giver_name} suggested a goal change",
        data.message or "",
        {
            "goal_id": updated.id,
            "giver_id": updated.empowered_by,
            "initial_target_count": updated.initial_target_count,
            "initial_sessions_per_week": updated.initial_sessions_per_week,
            "suggested_target_count": updated.suggested_target_count,
            "suggested_sessions_per_week": updated.suggested_sessions_per_week,
        },
        clearable=False,
    )
    return _to_response(updated)


async def respond_to_suggestion(goal_id: str, user: dict, data: GoalSuggestionReply) -> GoalResponse:
    goal = await _load_goal(goal_id)
    _require_owner(goal, user)
    try:
        updated = goal_tracker.respond_to_suggestion(goal, data.accept, data.message)
    except GoalTrackerError as e:
        raise _http_error(e)

    await _save(goal, updated)
    await clear_goal_notifications(updated.user_id, str(goal.id), "goal_change_suggested")

    recipient_name = await _user_name(updated.user_id)
    if data.accept:
        message = (
            f"{recipient_name} accepted your suggestion: {updated.target_count} weeks, "
            f"{updated.sessions_per_week} sessions per week"
        )
    else:
        message = f"{recipient_name} kept their original goal."
    notify.notify_user_bg(
        updated.empowered_by,
        "goal_approval_response",
        "🎯 Goal finalized",
        message,
        {"goal_id": updated.id, "recipient_id": updated.user_id, "accepted": data.accept},
    )
    return _to_response(updated)


# -----------------------------
# Completion side
# -----------------------------
async def reveal_goal(goal_id: str, user: dict) -> GoalResponse:
    goal = await _load_goal(goal_id)
    _require_owner(goal, user)
    try:
        updated = goal_tracker.mark_revealed(goal)
    except GoalTrackerError as e:
        raise _http_error(e)
    if updated is not goal:
        await _save(goal, updated)
    return _to_response(updated)


async def add_hint(goal_id: str, user: dict, data: GoalHintRequest) -> GoalResponse:
    goal = await _load_goal(goal_id)
    _require_owner(goal, user)
    try:
        updated = goal_tracker.append_hint(goal, data.session, data.hint)
    except GoalTrackerError as e:
        raise _http_error(e)
    await _save(goal, updated)
    return _to_response(updated)
