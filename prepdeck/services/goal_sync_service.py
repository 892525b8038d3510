"""
Progress Synchronizer: keeps COURSE/MODULE goal progress in step with topics.

``current`` is always recomputed from a fresh hierarchy read, never adjusted
by deltas, so calling a sync twice is harmless and a stale write made by a
racing sync is corrected by the next one.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

import logging
import time

from ..models.goals import Goal, GoalCategory, GoalProgress, SyncReport
from ..models.hierarchy import CourseSnapshot
from ..utils.exceptions import PersistenceError, ResourceNotFoundError
from ..utils.metrics import GOAL_SYNC_COUNTER, GOAL_SYNC_LATENCY
from .goal_scope import CourseScope, ModuleScope, count_completed, resolve_scope, scope_topics
from .goal_store import GoalStore
from .hierarchy_service import HierarchyAccessor

logger = logging.getLogger(__name__)


def recompute_goal(goal: Goal, course: CourseSnapshot) -> GoalProgress:
    """
    Derive ``current``/``isDone`` for one goal from a course snapshot.

    MODULE goals count completed topics in their module, COURSE goals count
    completed topics across the whole course. CUSTOM goals are not
    hierarchy-bound; their current value is kept as is.
    """
    if goal.category is GoalCategory.CUSTOM:
        current = goal.current
    else:
        scope = resolve_scope(goal.category, goal.targetId)
        current = count_completed(scope_topics(scope, course))

    return GoalProgress(current=current, isDone=current >= goal.target)


class GoalSynchronizer:
    """Recomputes every goal bound to a course or to one of its modules."""

    def __init__(self, hierarchy: HierarchyAccessor, store: GoalStore):
        self.hierarchy = hierarchy
        self.store = store

    async def sync_goals_for_course(self, owner_id: str, course_id: str) -> SyncReport:
        """
        Recompute and persist progress of the owner's goals tracking ``course_id``.

        Hierarchy reads happen before any write: if the course cannot be read
        for this owner, ResourceNotFoundError is raised and no goal is touched.
        Once goals are loaded, each write stands alone; failed writes are
        listed in the report rather than rolling back their siblings.

        Raises:
            ResourceNotFoundError: course missing or not owned by owner_id
            PersistenceError: the hierarchy or the goal list could not be read
        """
        started = time.perf_counter()

        module_ids = await self.hierarchy.list_module_ids(owner_id, course_id)
        if module_ids is None:
            raise ResourceNotFoundError("Course", course_id)

        scopes = [CourseScope(course_id), *(ModuleScope(module_id) for module_id in module_ids)]
        goals = await self.store.find_goals_matching(owner_id, scopes)

        report = SyncReport(courseId=course_id, matched=len(goals))
        if not goals:
            logger.debug(
                "No goals track this course",
                extra={"owner_id": owner_id, "course_id": course_id},
            )
            GOAL_SYNC_LATENCY.observe(time.perf_counter() - started)
            return report

        course = await self.hierarchy.fetch_course_with_topics(owner_id, course_id)
        if course is None:
            raise ResourceNotFoundError("Course", course_id)

        for goal in goals:
            progress = recompute_goal(goal, course)
            if progress.current == goal.current and progress.isDone == goal.isDone:
                report.unchanged.append(goal.id)
                continue

            try:
                written = await self.store.update_goal(goal.id, owner_id, progress.model_dump())
            except PersistenceError as e:
                logger.warning(
                    "Goal progress write failed",
                    extra={
                        "owner_id": owner_id,
                        "course_id": course_id,
                        "goal_id": goal.id,
                        "detail": e.detail,
                    },
                )
                report.failed.append(goal.id)
                continue

            if written:
                report.updated.append(goal.id)
            else:
                logger.debug("Goal vanished during sync", extra={"goal_id": goal.id})
                report.vanished.append(goal.id)

        GOAL_SYNC_COUNTER.labels(outcome="updated").inc(len(report.updated))
        GOAL_SYNC_COUNTER.labels(outcome="unchanged").inc(len(report.unchanged))
        GOAL_SYNC_COUNTER.labels(outcome="failed").inc(len(report.failed))
        GOAL_SYNC_LATENCY.observe(time.perf_counter() - started)

        log = logger.warning if report.failed else logger.info
        log(
            "Goal sync finished",
            extra={
                "owner_id": owner_id,
                "course_id": course_id,
                "matched": report.matched,
                "updated": len(report.updated),
                "unchanged": len(report.unchanged),
                "failed": report.failureCount,
                "vanished": len(report.vanished),
            },
        )
        return report
