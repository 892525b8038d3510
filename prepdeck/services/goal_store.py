"""
Goal Store: durable goal records, always scoped by owner.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from ..core.database import translate_store_errors
from ..models.goals import Goal, GoalCategory
from .goal_scope import CourseScope, GoalScope, ModuleScope

if TYPE_CHECKING:
    from prisma import Prisma

logger = logging.getLogger(__name__)


class GoalStore(Protocol):
    """Persistence boundary for goals. Every call is filtered by owner_id."""

    async def insert_goal(self, owner_id: str, fields: dict[str, Any]) -> Goal: ...

    async def find_goal(self, goal_id: str, owner_id: str) -> Goal | None: ...

    async def find_goals_matching(self, owner_id: str, scopes: list[GoalScope]) -> list[Goal]:
        """Goals bound to any of ``scopes`` (course or module scopes)."""
        ...

    async def list_goals(self, owner_id: str) -> list[Goal]:
        """All of the owner's goals, newest first."""
        ...

    async def update_goal(self, goal_id: str, owner_id: str, patch: dict[str, Any]) -> bool:
        """Apply ``patch``; False when no goal with that id belongs to owner."""
        ...

    async def delete_goal(self, goal_id: str, owner_id: str) -> None:
        """Delete the goal if it exists for owner; otherwise do nothing."""
        ...


def scope_filters(scopes: list[GoalScope]) -> list[dict[str, Any]]:
    """Build the OR-clauses selecting goals bound to ``scopes``."""
    course_ids = sorted({s.course_id for s in scopes if isinstance(s, CourseScope)})
    module_ids = sorted({s.module_id for s in scopes if isinstance(s, ModuleScope)})

    filters: list[dict[str, Any]] = []
    if course_ids:
        filters.append({"category": GoalCategory.COURSE.value, "targetId": {"in": course_ids}})
    if module_ids:
        filters.append({"category": GoalCategory.MODULE.value, "targetId": {"in": module_ids}})
    return filters


class PrismaGoalStore:
    """GoalStore backed by the Prisma client."""

    def __init__(self, db: Prisma):
        self.db = db

    async def insert_goal(self, owner_id: str, fields: dict[str, Any]) -> Goal:
        data = {key: _to_db(value) for key, value in fields.items()}
        data["userId"] = owner_id
        with translate_store_errors("insert_goal", owner_id=owner_id):
            goal = await self.db.goal.create(data=data)
        return Goal.model_validate(goal)

    async def find_goal(self, goal_id: str, owner_id: str) -> Goal | None:
        with translate_store_errors("find_goal", owner_id=owner_id, goal_id=goal_id):
            goal = await self.db.goal.find_first(where={"id": goal_id, "userId": owner_id})
        return Goal.model_validate(goal) if goal else None

    async def find_goals_matching(self, owner_id: str, scopes: list[GoalScope]) -> list[Goal]:
        filters = scope_filters(scopes)
        if not filters:
            return []
        with translate_store_errors("find_goals_matching", owner_id=owner_id):
            goals = await self.db.goal.find_many(
                where={"userId": owner_id, "OR": filters},
                order={"createdAt": "asc"},
            )
        return [Goal.model_validate(goal) for goal in goals]

    async def list_goals(self, owner_id: str) -> list[Goal]:
        with translate_store_errors("list_goals", owner_id=owner_id):
            goals = await self.db.goal.find_many(
                where={"userId": owner_id},
                order={"createdAt": "desc"},
            )
        return [Goal.model_validate(goal) for goal in goals]

    async def update_goal(self, goal_id: str, owner_id: str, patch: dict[str, Any]) -> bool:
        data = {key: _to_db(value) for key, value in patch.items()}
        # update_many so the owner filter is part of the write itself
        with translate_store_errors("update_goal", owner_id=owner_id, goal_id=goal_id):
            count = await self.db.goal.update_many(
                where={"id": goal_id, "userId": owner_id},
                data=data,
            )
        return count > 0

    async def delete_goal(self, goal_id: str, owner_id: str) -> None:
        with translate_store_errors("delete_goal", owner_id=owner_id, goal_id=goal_id):
            count = await self.db.goal.delete_many(where={"id": goal_id, "userId": owner_id})
        if count == 0:
            logger.debug(
                "Delete matched no goal", extra={"owner_id": owner_id, "goal_id": goal_id}
            )


def _to_db(value: Any) -> Any:
    # Enums are stored as their string values
    return getattr(value, "value", value)
