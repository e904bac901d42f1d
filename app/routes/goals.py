# app/routes/goals.py
from fastapi import APIRouter, Depends
from typing import Dict, List, Optional

from ..schemas.goal_schema import (
    ApprovalDecisionRequest,
    GoalCreateRequest,
    GoalHintRequest,
    GoalResponse,
    GoalSuggestionReply,
    GoalSuggestionRequest,
    LogSessionRequest,
)
from ..controllers import goal_controller
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/goals", tags=["Goals"])


# ---------- Recipient ----------
@router.post("", response_model=GoalResponse, status_code=201, summary="Set a goal for a redeemed gift")
async def create_goal_route(data: GoalCreateRequest, user: Dict = Depends(get_current_user)):
    return await goal_controller.create_goal(user, data)


@router.get("", response_model=List[GoalResponse], summary="List my goals")
async def list_goals_route(user: Dict = Depends(get_current_user)):
    return await goal_controller.list_goals(user)


@router.get("/{goal_id}", response_model=GoalResponse, summary="Goal with weekly progress (owner or giver)")
async def get_goal_route(goal_id: str, user: Dict = Depends(get_current_user)):
    return await goal_controller.get_goal(goal_id, user)


@router.post("/{goal_id}/sessions", response_model=GoalResponse, summary="Log today's session")
async def log_session_route(
    goal_id: str,
    data: Optional[LogSessionRequest] = None,
    user: Dict = Depends(get_current_user),
):
    return await goal_controller.log_session(goal_id, user, data or LogSessionRequest())


@router.post("/{goal_id}/suggestion/response", response_model=GoalResponse, summary="Accept or decline the giver's suggestion")
async def respond_suggestion_route(
    goal_id: str, data: GoalSuggestionReply, user: Dict = Depends(get_current_user)
):
    return await goal_controller.respond_to_suggestion(goal_id, user, data)


@router.post("/{goal_id}/reveal", response_model=GoalResponse, summary="Reveal the experience of a completed goal")
async def reveal_goal_route(goal_id: str, user: Dict = Depends(get_current_user)):
    return await goal_controller.reveal_goal(goal_id, user)


@router.post("/{goal_id}/hints", response_model=GoalResponse, summary="Store a hint shown for a session")
async def add_hint_route(goal_id: str, data: GoalHintRequest, user: Dict = Depends(get_current_user)):
    return await goal_controller.add_hint(goal_id, user, data)


# ---------- Giver ----------
@router.post("/{goal_id}/approval", response_model=GoalResponse, summary="Approve or reject a goal (giver)")
async def resolve_approval_route(
    goal_id: str, data: ApprovalDecisionRequest, user: Dict = Depends(get_current_user)
):
    return await goal_controller.resolve_approval(goal_id, user, data)


@router.post("/{goal_id}/suggestion", response_model=GoalResponse, summary="Suggest different goal parameters (giver)")
async def suggest_change_route(
    goal_id: str, data: GoalSuggestionRequest, user: Dict = Depends(get_current_user)
):
    return await goal_controller.suggest_change(goal_id, user, data)
