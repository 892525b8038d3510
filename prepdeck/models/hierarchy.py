"""
Read-only snapshots of the Course -> Module -> Topic hierarchy.

The goal engine never mutates these; they are built from Prisma rows via
``model_validate`` and only carry the fields the engine reads.

Copyright (C) 2025 Prepdeck
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TopicSnapshot(BaseModel):
    """A single completable unit of work."""

    id: str
    title: str = ""
    isCompleted: bool = False
    completedAt: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ModuleSnapshot(BaseModel):
    """A module and its topics."""

    id: str
    courseId: str | None = None
    title: str = ""
    topics: list[TopicSnapshot] = []

    model_config = ConfigDict(from_attributes=True)

    @property
    def completed_topics(self) -> list[TopicSnapshot]:
        return [topic for topic in self.topics if topic.isCompleted]


class CourseSnapshot(BaseModel):
    """A course with every module and topic beneath it."""

    id: str
    userId: str
    title: str = ""
    modules: list[ModuleSnapshot] = []

    model_config = ConfigDict(from_attributes=True)

    @property
    def topics(self) -> list[TopicSnapshot]:
        """All topics across all modules, in module order."""
        return [topic for module in self.modules for topic in module.topics]

    @property
    def completed_topics(self) -> list[TopicSnapshot]:
        return [topic for topic in self.topics if topic.isCompleted]

    def find_module(self, module_id: str) -> ModuleSnapshot | None:
        return next((module for module in self.modules if module.id == module_id), None)
