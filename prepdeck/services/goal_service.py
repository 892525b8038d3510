"""
Goal service: the operations callers use to manage goals.

Every method takes the owner explicitly; nothing here reads an ambient
"current user". Storage and hierarchy access go through the GoalStore and
HierarchyAccessor protocols so the service runs the same against Prisma or
in-memory fakes.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from ..config import Settings, get_settings
from ..models.goals import (
    Goal,
    GoalCategory,
    GoalCreate,
    GoalDetail,
    GoalForecast,
    SyncReport,
)
from ..models.hierarchy import CourseSnapshot, ModuleSnapshot, TopicSnapshot
from ..utils.exceptions import ResourceNotFoundError, UnauthorizedError, ValidationError
from .forecast_service import forecast, observed_velocity, progress_percent
from .goal_scope import (
    CourseScope,
    GoalScope,
    ModuleScope,
    compute_target,
    count_completed,
    resolve_scope,
)
from .goal_selection import select_imminent
from .goal_store import GoalStore
from .goal_sync_service import GoalSynchronizer
from .hierarchy_service import HierarchyAccessor

logger = logging.getLogger(__name__)


def _require_owner(owner_id: str | None) -> str:
    if not owner_id:
        raise UnauthorizedError()
    return owner_id


class GoalService:
    """Create, update, sync, select and forecast goals for one owner at a time."""

    def __init__(
        self,
        store: GoalStore,
        hierarchy: HierarchyAccessor,
        settings: Settings | None = None,
    ):
        self.store = store
        self.hierarchy = hierarchy
        self.settings = settings or get_settings()
        self.synchronizer = GoalSynchronizer(hierarchy, store)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_owned(self, owner_id: str, goal_id: str) -> Goal:
        goal = await self.store.find_goal(goal_id, owner_id)
        if goal is None:
            raise ResourceNotFoundError("Goal", goal_id)
        return goal

    async def _load_scope(
        self, owner_id: str, scope: GoalScope
    ) -> CourseSnapshot | ModuleSnapshot | None:
        """Read the hierarchy entity behind ``scope``; raise if the owner cannot see it."""
        match scope:
            case CourseScope(course_id=course_id):
                course = await self.hierarchy.fetch_course_with_topics(owner_id, course_id)
                if course is None:
                    raise ResourceNotFoundError("Course", course_id)
                return course
            case ModuleScope(module_id=module_id):
                module = await self.hierarchy.fetch_module_with_topics(owner_id, module_id)
                if module is None:
                    raise ResourceNotFoundError("Module", module_id)
                return module
            case _:
                return None

    async def _scope_topics(self, owner_id: str, goal: Goal) -> list[TopicSnapshot]:
        try:
            snapshot = await self._load_scope(owner_id, resolve_scope(goal.category, goal.targetId))
        except ResourceNotFoundError:
            return []
        return snapshot.topics if snapshot else []

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create_goal(self, owner_id: str, data: GoalCreate) -> Goal:
        """
        Create a goal, computing its target from the hierarchy.

        COURSE and MODULE goals must point at an entity the owner can see;
        otherwise ResourceNotFoundError is raised before anything is written.
        Their initial progress is derived from the same snapshot.
        """
        _require_owner(owner_id)
        scope = resolve_scope(data.category, data.targetId)
        snapshot = await self._load_scope(owner_id, scope)

        target = compute_target(data.category, snapshot, data.target)
        current = count_completed(snapshot.topics) if snapshot else 0

        goal = await self.store.insert_goal(
            owner_id,
            {
                "title": data.title,
                "type": data.type,
                "category": data.category,
                "targetId": data.targetId if snapshot else None,
                "target": target,
                "current": current,
                "isDone": current >= target,
                "deadline": data.deadline,
                "color": data.color,
            },
        )

        logger.info(
            "Goal created",
            extra={
                "owner_id": owner_id,
                "goal_id": goal.id,
                "category": goal.category.value,
                "target_id": goal.targetId,
                "target": goal.target,
            },
        )
        return goal

    async def sync_goals_for_course(self, owner_id: str, course_id: str) -> SyncReport:
        """Recompute progress of every goal tracking the course or one of its modules."""
        _require_owner(owner_id)
        return await self.synchronizer.sync_goals_for_course(owner_id, course_id)

    async def toggle_goal_done(self, owner_id: str, goal_id: str) -> Goal:
        """
        Flip a goal's done state.

        CUSTOM goals move ``current`` along with ``isDone`` so that
        ``isDone == (current >= target)`` keeps holding. COURSE and MODULE
        goals follow their topics, so for them this re-derives progress from
        the hierarchy instead of flipping it.
        """
        _require_owner(owner_id)
        goal = await self._get_owned(owner_id, goal_id)

        if goal.category is GoalCategory.CUSTOM:
            if goal.isDone:
                patch = {"current": min(goal.current, goal.target - 1), "isDone": False}
            else:
                patch = {"current": goal.target, "isDone": True}
            if not await self.store.update_goal(goal_id, owner_id, patch):
                raise ResourceNotFoundError("Goal", goal_id)
        else:
            snapshot = await self._load_scope(owner_id, resolve_scope(goal.category, goal.targetId))
            course_id = snapshot.id if isinstance(snapshot, CourseSnapshot) else snapshot.courseId
            await self.synchronizer.sync_goals_for_course(owner_id, course_id)

        return await self._get_owned(owner_id, goal_id)

    async def update_goal_progress(self, owner_id: str, goal_id: str, new_current: int) -> Goal:
        """
        Set manual progress on a CUSTOM goal.

        ``current`` is capped at ``target``; reaching the target marks the goal done.
        """
        _require_owner(owner_id)
        if new_current < 0:
            raise ValidationError("Progress cannot be negative")

        goal = await self._get_owned(owner_id, goal_id)
        if goal.category is not GoalCategory.CUSTOM:
            raise ValidationError(
                f"{goal.category.value} goal progress follows topic completion and cannot be set manually"
            )

        patch = {"current": min(new_current, goal.target), "isDone": new_current >= goal.target}
        if not await self.store.update_goal(goal_id, owner_id, patch):
            raise ResourceNotFoundError("Goal", goal_id)
        return goal.model_copy(update=patch)

    async def delete_goal(self, owner_id: str, goal_id: str) -> None:
        """Delete a goal. Missing or foreign goals are silently ignored."""
        _require_owner(owner_id)
        await self.store.delete_goal(goal_id, owner_id)
        logger.info("Goal deleted", extra={"owner_id": owner_id, "goal_id": goal_id})

    async def list_goals(self, owner_id: str) -> list[Goal]:
        _require_owner(owner_id)
        return await self.store.list_goals(owner_id)

    async def get_imminent_goal(self, owner_id: str) -> Goal | None:
        """The goal to surface on the dashboard; candidates are considered in creation order."""
        _require_owner(owner_id)
        goals = await self.store.list_goals(owner_id)
        return select_imminent(sorted(goals, key=lambda goal: goal.createdAt))

    async def forecast_goal(
        self,
        owner_id: str,
        goal_id: str,
        velocity: float | None = None,
        observed: bool = False,
        now: datetime | None = None,
    ) -> GoalForecast:
        """
        Forecast a stored goal.

        An explicit ``velocity`` wins. Otherwise, with ``observed`` set, the
        velocity is measured from recent topic completions in the goal's
        scope; the configured default is used when nothing was completed
        recently or ``observed`` is off.
        """
        _require_owner(owner_id)
        goal = await self._get_owned(owner_id, goal_id)

        if velocity is None:
            velocity = self.settings.GOAL_DEFAULT_VELOCITY_PER_WEEK
            if observed:
                measured = observed_velocity(
                    await self._scope_topics(owner_id, goal),
                    now=now,
                    window_weeks=self.settings.GOAL_VELOCITY_WINDOW_WEEKS,
                )
                if measured is not None:
                    velocity = measured

        return forecast(
            goal,
            velocity,
            now=now,
            urgency_window=timedelta(days=self.settings.GOAL_URGENCY_WINDOW_DAYS),
        )

    async def get_goal_detail(
        self, owner_id: str, goal_id: str, now: datetime | None = None
    ) -> GoalDetail:
        """A goal with the course or module it tracks, its progress percentage and forecast."""
        _require_owner(owner_id)
        goal = await self._get_owned(owner_id, goal_id)

        course: CourseSnapshot | None = None
        module: ModuleSnapshot | None = None
        match resolve_scope(goal.category, goal.targetId):
            case CourseScope(course_id=course_id):
                course = await self.hierarchy.fetch_course_with_topics(owner_id, course_id)
            case ModuleScope(module_id=module_id):
                module = await self.hierarchy.fetch_module_with_topics(owner_id, module_id)

        return GoalDetail(
            goal=goal,
            course=course,
            module=module,
            progressPercent=progress_percent(goal),
            forecast=forecast(
                goal,
                self.settings.GOAL_DEFAULT_VELOCITY_PER_WEEK,
                now=now,
                urgency_window=timedelta(days=self.settings.GOAL_URGENCY_WINDOW_DAYS),
            ),
        )
