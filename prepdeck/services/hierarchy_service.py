"""
Hierarchy Accessor: owner-scoped reads of Course -> Module -> Topic.

The goal engine depends only on the HierarchyAccessor protocol; the Prisma
implementation below is what the API wires in.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from ..core.database import translate_store_errors
from ..models.hierarchy import CourseSnapshot, ModuleSnapshot, TopicSnapshot
from ..utils.exceptions import ResourceNotFoundError

if TYPE_CHECKING:
    from prisma import Prisma

logger = logging.getLogger(__name__)


class HierarchyAccessor(Protocol):
    """Read-only hierarchy queries, always filtered by owner."""

    async def fetch_course_with_topics(
        self, owner_id: str, course_id: str
    ) -> CourseSnapshot | None:
        """The course with all modules and topics, or None if not visible to owner."""
        ...

    async def fetch_module_with_topics(
        self, owner_id: str, module_id: str
    ) -> ModuleSnapshot | None:
        """The module with its topics, or None if not visible to owner."""
        ...

    async def list_module_ids(self, owner_id: str, course_id: str) -> list[str] | None:
        """Ids of the course's modules, or None if the course is not visible to owner."""
        ...


class PrismaHierarchyAccessor:
    """HierarchyAccessor backed by the Prisma client."""

    def __init__(self, db: Prisma):
        self.db = db

    async def fetch_course_with_topics(
        self, owner_id: str, course_id: str
    ) -> CourseSnapshot | None:
        with translate_store_errors("fetch_course", owner_id=owner_id, course_id=course_id):
            course = await self.db.course.find_first(
                where={"id": course_id, "userId": owner_id},
                include={
                    "modules": {
                        "include": {"topics": {"order_by": {"order": "asc"}}},
                        "order_by": {"order": "asc"},
                    }
                },
            )
        return CourseSnapshot.model_validate(course) if course else None

    async def fetch_module_with_topics(
        self, owner_id: str, module_id: str
    ) -> ModuleSnapshot | None:
        with translate_store_errors("fetch_module", owner_id=owner_id, module_id=module_id):
            module = await self.db.module.find_first(
                where={"id": module_id, "course": {"userId": owner_id}},
                include={"topics": {"order_by": {"order": "asc"}}},
            )
        return ModuleSnapshot.model_validate(module) if module else None

    async def list_module_ids(self, owner_id: str, course_id: str) -> list[str] | None:
        with translate_store_errors("list_module_ids", owner_id=owner_id, course_id=course_id):
            course = await self.db.course.find_first(
                where={"id": course_id, "userId": owner_id},
                include={"modules": True},
            )
        if not course:
            return None
        return [module.id for module in course.modules or []]


async def set_topic_completion(
    db: Prisma,
    owner_id: str,
    topic_id: str,
    completed: bool,
    course_id: str | None = None,
) -> tuple[TopicSnapshot, str]:
    """
    Mark a topic completed or not, stamping or clearing completedAt.

    When ``course_id`` is given the topic must also belong to that course.
    Returns the updated topic and the id of the course it belongs to.

    Raises:
        ResourceNotFoundError: topic missing or not owned by owner_id
    """
    module_filter: dict = {"course": {"userId": owner_id}}
    if course_id is not None:
        module_filter["courseId"] = course_id

    with translate_store_errors("set_topic_completion", owner_id=owner_id, topic_id=topic_id):
        topic = await db.topic.find_first(
            where={"id": topic_id, "module": module_filter},
            include={"module": True},
        )
        if not topic:
            raise ResourceNotFoundError("Topic", topic_id)

        updated = await db.topic.update(
            where={"id": topic_id},
            data={
                "isCompleted": completed,
                "completedAt": datetime.now(UTC) if completed else None,
            },
        )

    logger.info(
        "Topic completion changed",
        extra={"owner_id": owner_id, "topic_id": topic_id, "completed": completed},
    )
    return TopicSnapshot.model_validate(updated), topic.module.courseId
