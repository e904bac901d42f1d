# app/services/goal_tracker.py
"""
Weekly-window accounting and giver approval for a single goal.

Every function takes a GoalModel and returns a new one; nothing here touches
the database or sends notifications. Callers persist the result.

A goal needs `target_count` completed weeks. A week is completed once
`sessions_per_week` sessions land on distinct calendar days. The weekly
window is anchored on the day of the first session and always advances by
exactly seven days from the previous anchor, whatever day the last session
of the week happened on.
"""
from datetime import datetime, timedelta, date
from typing import List, Literal, Optional, Tuple

from ..models.goal_model import GoalHint, GoalModel
from ..utils.datetime_utils import now_local, start_of_day

# ── config ──────────────────────────────────────────────────────────────────────
MAX_TARGET_WEEKS = 5
MAX_SESSIONS_PER_WEEK = 7
MAX_SESSION_MINUTES = 3 * 60
APPROVAL_WINDOW = timedelta(hours=24)
WEEK = timedelta(days=7)

_WEEKDAY_LETTERS = ["S", "M", "T", "W", "T", "F", "S"]  # Sunday first

Decision = Literal["approved", "rejected"]


# -----------------------------
# Errors
# -----------------------------
class GoalTrackerError(Exception):
    """Base for rejected goal transitions. The goal is left untouched."""


class DuplicateSessionError(GoalTrackerError):
    def __init__(self, day: str):
        super().__init__(f"A session was already logged on {day}.")
        self.day = day


class InvalidStateError(GoalTrackerError):
    pass


class ApprovalAlreadyResolvedError(GoalTrackerError):
    pass


class GoalValidationError(GoalTrackerError):
    pass


# -----------------------------
# Helpers
# -----------------------------
def _date_stamp(dt: datetime) -> str:
    return dt.date().isoformat()


def _check_parameters(target_count: int, sessions_per_week: int) -> None:
    if not 1 <= target_count <= MAX_TARGET_WEEKS:
        raise GoalValidationError(f"The duration must be between 1 and {MAX_TARGET_WEEKS} weeks.")
    if not 1 <= sessions_per_week <= MAX_SESSIONS_PER_WEEK:
        raise GoalValidationError(
            f"Sessions per week must be between 1 and {MAX_SESSIONS_PER_WEEK}."
        )


# -----------------------------
# Creation + approval handshake
# -----------------------------
def new_goal(
    *,
    user_id: str,
    experience_gift_id: str,
    empowered_by: Optional[str],
    category: str,
    target_count: int,
    sessions_per_week: int,
    target_hours: int = 0,
    target_minutes: int = 0,
    now: Optional[datetime] = None,
) -> GoalModel:
    """Build a goal from the recipient's goal-setting form, pending giver approval."""
    category = (category or "").strip()
    if not category:
        raise GoalValidationError("A category is required.")
    _check_parameters(target_count, sessions_per_week)
    if target_hours < 0 or target_minutes < 0:
        raise GoalValidationError("Session time cannot be negative.")
    if target_hours * 60 + target_minutes > MAX_SESSION_MINUTES:
        raise GoalValidationError("Each session cannot exceed 3 hours.")

    now = now or now_local()
    duration = target_count * 7
    goal = GoalModel(
        user_id=user_id,
        experience_gift_id=experience_gift_id,
        empowered_by=empowered_by,
        category=category,
        title=f"Attend {category} Sessions",
        description=(
            f"Work on {category} for {target_count} weeks, "
            f"{sessions_per_week} times per week."
        ),
        target_count=target_count,
        sessions_per_week=sessions_per_week,
        duration=duration,
        start_date=now,
        end_date=now + timedelta(days=duration),
        target_hours=target_hours,
        target_minutes=target_minutes,
        created_at=now,
    )
    return request_approval(goal, now=now)


def request_approval(goal: GoalModel, now: Optional[datetime] = None) -> GoalModel:
    """Open the 24h approval window and snapshot the proposed parameters."""
    if goal.approval_status != "pending" or goal.giver_action_taken:
        raise ApprovalAlreadyResolvedError("Approval has already been resolved for this goal.")
    now = now or now_local()
    return goal.model_copy(update={
        "approval_status": "pending",
        "initial_target_count": goal.target_count,
        "initial_sessions_per_week": goal.sessions_per_week,
        "approval_requested_at": now,
        "approval_deadline": now + APPROVAL_WINDOW,
    })


def resolve_approval(
    goal: GoalModel,
    decision: Decision,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> GoalModel:
    """Giver approves or rejects. One shot: any later attempt is refused."""
    if decision not in ("approved", "rejected"):
        raise GoalValidationError(f"Unknown approval decision: {decision!r}")
    if goal.approval_status != "pending" or goal.giver_action_taken:
        raise ApprovalAlreadyResolvedError("Approval has already been resolved for this goal.")

    update = {
        "approval_status": decision,
        "approval_resolved_at": now or now_local(),
        "giver_action_taken": True,
        "giver_message": message,
    }
    if decision == "rejected":
        # the gift gets re-negotiated outside of this goal
        update["is_active"] = False
    return goal.model_copy(update=update)


def suggest_goal_change(
    goal: GoalModel,
    target_count: int,
    sessions_per_week: int,
    message: Optional[str] = None,
) -> GoalModel:
    """Giver counter-proposes instead of approving. Suggestions may only raise the bar."""
    if goal.approval_status != "pending" or goal.giver_action_taken:
        raise ApprovalAlreadyResolvedError("Approval has already been resolved for this goal.")
    _check_parameters(target_count, sessions_per_week)

    initial_weeks = goal.initial_target_count or goal.target_count
    initial_sessions = goal.initial_sessions_per_week or goal.sessions_per_week
    if target_count < initial_weeks or sessions_per_week < initial_sessions:
        raise GoalValidationError("Suggested goal cannot be less than the original goal.")

    return goal.model_copy(update={
        "suggested_target_count": target_count,
        "suggested_sessions_per_week": sessions_per_week,
        "giver_message": message,
        "giver_action_taken": True,
    })


def respond_to_suggestion(
    goal: GoalModel,
    accept: bool,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> GoalModel:
    """Recipient answers a suggestion. Either way the goal ends up approved."""
    if goal.approval_status != "pending" or goal.suggested_target_count is None:
        raise InvalidStateError("There is no pending goal suggestion to respond to.")

    update = {
        "approval_status": "approved",
        "approval_resolved_at": now or now_local(),
        "receiver_message": message,
    }
    if accept:
        weeks = goal.suggested_target_count
        sessions = goal.suggested_sessions_per_week or goal.sessions_per_week
        if goal.current_count > weeks or goal.weekly_count > sessions:
            raise InvalidStateError("Progress already exceeds the suggested goal.")
        update.update({
            "target_count": weeks,
            "sessions_per_week": sessions,
            "duration": weeks * 7,
            "description": (
                f"Work on {goal.category} for {weeks} weeks, {sessions} times per week."
            ),
        })
        if goal.start_date is not None:
            update["end_date"] = goal.start_date + timedelta(days=weeks * 7)
    return goal.model_copy(update=update)


def is_approval_overdue(goal: GoalModel, now: Optional[datetime] = None) -> bool:
    """Display-only: the deadline never changes the goal's state."""
    if goal.approval_status != "pending" or goal.approval_deadline is None:
        return False
    return (now or now_local()) >= goal.approval_deadline


# -----------------------------
# Session logging
# -----------------------------
def log_session(goal: GoalModel, occurred_at: Optional[datetime] = None) -> GoalModel:
    if not goal.is_active:
        raise InvalidStateError("This goal is no longer active.")
    if goal.is_completed:
        raise InvalidStateError("This goal is already completed.")
    if goal.approval_status != "approved":
        raise InvalidStateError("Sessions count only once the goal has been approved.")

    today = now_local()
    occurred_at = occurred_at or today
    stamp = _date_stamp(occurred_at)
    if occurred_at.date() > today.date():
        raise GoalValidationError(f"A session cannot be logged for a future day ({stamp}).")

    # last_session_date survives the rollover, weekly_log_dates does not
    if stamp in goal.weekly_log_dates or stamp == goal.last_session_date:
        raise DuplicateSessionError(stamp)
    if goal.last_session_date is not None and stamp < goal.last_session_date:
        raise InvalidStateError(
            f"A later session was already logged on {goal.last_session_date}."
        )

    week_start_at = goal.week_start_at
    if week_start_at is None:
        week_start_at = start_of_day(occurred_at)
    elif occurred_at < week_start_at:
        raise InvalidStateError(
            f"The current week starts on {_date_stamp(week_start_at)}; "
            "sessions before it cannot be logged."
        )

    weekly_log_dates = goal.weekly_log_dates + [stamp]
    weekly_count = goal.weekly_count + 1
    current_count = goal.current_count

    if weekly_count == goal.sessions_per_week:
        current_count += 1
        weekly_count = 0
        weekly_log_dates = []
        week_start_at = week_start_at + WEEK

    update = {
        "week_start_at": week_start_at,
        "weekly_log_dates": weekly_log_dates,
        "weekly_count": weekly_count,
        "current_count": current_count,
        "last_session_date": stamp,
    }
    if current_count == goal.target_count:
        update["is_completed"] = True
        update["completed_at"] = occurred_at
    return goal.model_copy(update=update)


# -----------------------------
# Completion side
# -----------------------------
def mark_revealed(goal: GoalModel, now: Optional[datetime] = None) -> GoalModel:
    if not goal.is_completed:
        raise InvalidStateError("The experience is revealed only after the goal is completed.")
    if goal.is_revealed:
        return goal
    return goal.model_copy(update={"is_revealed": True, "revealed_at": now or now_local()})


def append_hint(
    goal: GoalModel, session: int, hint: str, now: Optional[datetime] = None
) -> GoalModel:
    hint = (hint or "").strip()
    if not hint:
        raise GoalValidationError("Hint text is required.")
    if session < 1:
        raise GoalValidationError("Hint session number starts at 1.")
    entry = GoalHint(session=session, hint=hint, date=now or now_local())
    return goal.model_copy(update={"hints": goal.hints + [entry]})


# -----------------------------
# Read-only views
# -----------------------------
def overall_progress(goal: GoalModel) -> int:
    if not goal.target_count:
        return 0
    return min(100, round(goal.current_count / goal.target_count * 100))


def weekly_progress(goal: GoalModel) -> int:
    denom = goal.sessions_per_week or 1
    return min(100, round(goal.weekly_count / denom * 100))


def anchored_week_dates(week_start_at: datetime) -> List[date]:
    first = week_start_at.date()
    return [first + timedelta(days=i) for i in range(7)]


def ordered_weekdays_from(start: datetime) -> List[str]:
    # Python weekday(): Monday=0; shift to Sunday=0
    start_idx = (start.weekday() + 1) % 7
    return [_WEEKDAY_LETTERS[(start_idx + i) % 7] for i in range(7)]


def week_window(goal: GoalModel) -> Optional[Tuple[datetime, datetime]]:
    if goal.week_start_at is None:
        return None
    return goal.week_start_at, goal.week_start_at + WEEK


def is_week_overdue(goal: GoalModel, now: Optional[datetime] = None) -> bool:
    """True once the anchored window has passed short of quota. Carries no penalty."""
    window = week_window(goal)
    if window is None or goal.is_completed:
        return False
    return (now or now_local()) >= window[1] and goal.weekly_count < goal.sessions_per_week
