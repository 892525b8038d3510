"""
Goal routes.

Thin HTTP layer over GoalService: the owner id comes from the bearer token
and is passed explicitly to every service call.

Copyright (C) 2025 Prepdeck
"""

from fastapi import APIRouter, Query, status

from ..dependencies import CurrentUserId, GoalServiceDep
from ..models.goals import (
    Goal,
    GoalCreate,
    GoalDetail,
    GoalForecast,
    GoalProgressUpdate,
    SyncReport,
)

router = APIRouter(prefix="/api/v1/goals", tags=["goals"])


@router.get("", response_model=list[Goal])
async def list_goals(owner_id: CurrentUserId, service: GoalServiceDep):
    """List goals, newest first."""
    return await service.list_goals(owner_id)


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(data: GoalCreate, owner_id: CurrentUserId, service: GoalServiceDep):
    """Create a goal. COURSE/MODULE targets are computed from the hierarchy."""
    return await service.create_goal(owner_id, data)


@router.get("/imminent", response_model=Goal | None)
async def get_imminent_goal(owner_id: CurrentUserId, service: GoalServiceDep):
    """The goal closest to completion, or the latest finished one."""
    return await service.get_imminent_goal(owner_id)


@router.post("/sync/{course_id}", response_model=SyncReport)
async def sync_course_goals(course_id: str, owner_id: CurrentUserId, service: GoalServiceDep):
    """Recompute progress of every goal tracking the course or its modules."""
    return await service.sync_goals_for_course(owner_id, course_id)


@router.get("/{goal_id}", response_model=GoalDetail)
async def get_goal(goal_id: str, owner_id: CurrentUserId, service: GoalServiceDep):
    return await service.get_goal_detail(owner_id, goal_id)


@router.patch("/{goal_id}/toggle", response_model=Goal)
async def toggle_goal(goal_id: str, owner_id: CurrentUserId, service: GoalServiceDep):
    """Flip a CUSTOM goal's done state, or refresh a COURSE/MODULE goal."""
    return await service.toggle_goal_done(owner_id, goal_id)


@router.post("/{goal_id}/progress", response_model=Goal)
async def record_progress(
    goal_id: str,
    data: GoalProgressUpdate,
    owner_id: CurrentUserId,
    service: GoalServiceDep,
):
    """Record manual progress for a CUSTOM goal."""
    return await service.update_goal_progress(owner_id, goal_id, data.current)


@router.get("/{goal_id}/forecast", response_model=GoalForecast)
async def forecast_goal(
    goal_id: str,
    owner_id: CurrentUserId,
    service: GoalServiceDep,
    velocity: float | None = Query(None, description="Units per week; defaults to configuration"),
    observed: bool = Query(False, description="Use recent topic completions as velocity"),
):
    """Predict the completion date of a goal."""
    return await service.forecast_goal(owner_id, goal_id, velocity=velocity, observed=observed)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(goal_id: str, owner_id: CurrentUserId, service: GoalServiceDep):
    """Delete a goal. Deleting a missing goal is not an error."""
    await service.delete_goal(owner_id, goal_id)
    return None
