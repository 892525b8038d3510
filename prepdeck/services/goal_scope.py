"""
Goal scope resolution and target calculation.

A goal's category and targetId are resolved once, here, into a scope value.
Both create-time target calculation and sync-time progress read the
hierarchy through the same scope, so the two cannot disagree about which
topics a goal covers.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models.goals import GoalCategory, GoalType
from ..models.hierarchy import CourseSnapshot, ModuleSnapshot, TopicSnapshot
from ..utils.exceptions import ValidationError

__all__ = [
    "GoalCategory",
    "GoalType",
    "CourseScope",
    "ModuleScope",
    "CustomScope",
    "GoalScope",
    "resolve_scope",
    "scope_topics",
    "compute_target",
    "count_completed",
    "MIN_TARGET",
]

# A goal never targets zero units; an empty course/module still needs one sync to complete.
MIN_TARGET = 1


@dataclass(frozen=True)
class CourseScope:
    course_id: str


@dataclass(frozen=True)
class ModuleScope:
    module_id: str


@dataclass(frozen=True)
class CustomScope:
    pass


GoalScope = CourseScope | ModuleScope | CustomScope


def resolve_scope(category: GoalCategory | str, target_id: str | None) -> GoalScope:
    """
    Turn a (category, targetId) pair into a scope.

    Raises:
        ValidationError: unknown category, or COURSE/MODULE without a targetId
    """
    try:
        category = GoalCategory(category)
    except ValueError:
        raise ValidationError(f"Unknown goal category: {category!r}")

    if category is GoalCategory.CUSTOM:
        return CustomScope()

    if not target_id:
        raise ValidationError(f"{category.value} goals require a targetId")

    if category is GoalCategory.COURSE:
        return CourseScope(course_id=target_id)
    return ModuleScope(module_id=target_id)


def scope_topics(scope: GoalScope, course: CourseSnapshot) -> list[TopicSnapshot]:
    """
    Topics of ``course`` covered by ``scope``.

    A module scope whose module is not part of the course covers nothing.
    """
    match scope:
        case CourseScope():
            return course.topics
        case ModuleScope(module_id=module_id):
            module = course.find_module(module_id)
            return module.topics if module else []
        case _:
            return []


def compute_target(
    category: GoalCategory | str,
    snapshot: CourseSnapshot | ModuleSnapshot | None = None,
    custom_target: int | None = None,
) -> int:
    """
    Target Calculator: total completable units for a new goal.

    COURSE counts topics across every module of the course, MODULE counts the
    module's topics, CUSTOM uses ``custom_target`` (default 1). The result is
    never below MIN_TARGET.
    """
    category = GoalCategory(category)

    if category is GoalCategory.CUSTOM:
        if custom_target is None:
            return MIN_TARGET
        if custom_target < MIN_TARGET:
            raise ValidationError("Custom goal target must be at least 1")
        return custom_target

    if snapshot is None:
        raise ValidationError(f"{category.value} goals need a hierarchy snapshot")

    return max(MIN_TARGET, len(snapshot.topics))


def count_completed(topics: list[TopicSnapshot]) -> int:
    return sum(1 for topic in topics if topic.isCompleted)
