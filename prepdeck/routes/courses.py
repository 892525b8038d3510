"""
Course routes.

Copyright (C) 2025 Prepdeck
"""

from fastapi import APIRouter, Query

from ..dependencies import CurrentUserId, DBDep, GoalServiceDep
from ..models.courses import TopicCompletionResponse
from ..services.hierarchy_service import set_topic_completion

router = APIRouter(prefix="/api/v1/courses", tags=["courses"])


@router.patch(
    "/{course_id}/topics/{topic_id}/complete",
    response_model=TopicCompletionResponse,
)
async def toggle_topic_completion(
    course_id: str,
    topic_id: str,
    owner_id: CurrentUserId,
    db: DBDep,
    service: GoalServiceDep,
    completed: bool = Query(..., description="Completion status"),
):
    """
    Mark a topic as completed or incomplete, then bring the course's goals
    up to date.
    """
    topic, _ = await set_topic_completion(db, owner_id, topic_id, completed, course_id=course_id)
    report = await service.sync_goals_for_course(owner_id, course_id)
    return TopicCompletionResponse(topic=topic, sync=report)
