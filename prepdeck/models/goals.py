"""
Goal models for request/response schemas.

Copyright (C) 2025 Prepdeck
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .hierarchy import CourseSnapshot, ModuleSnapshot


class GoalType(str, Enum):
    """Informational cadence of a goal. Not enforced by the engine."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"


class GoalCategory(str, Enum):
    """What a goal is bound to; decides how target and progress are computed."""

    COURSE = "COURSE"
    MODULE = "MODULE"
    CUSTOM = "CUSTOM"


class Goal(BaseModel):
    """A stored goal, as read back from the goal store."""

    id: str
    userId: str
    title: str
    type: GoalType = GoalType.WEEKLY
    category: GoalCategory = GoalCategory.CUSTOM
    targetId: str | None = None
    target: int = 1
    current: int = 0
    isDone: bool = False
    deadline: datetime | None = None
    color: str | None = None
    createdAt: datetime
    updatedAt: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class GoalCreate(BaseModel):
    """Schema for creating a new goal."""

    title: str = Field(..., min_length=1, max_length=200)
    type: GoalType = GoalType.WEEKLY
    category: GoalCategory = GoalCategory.CUSTOM
    targetId: str | None = None
    deadline: datetime | None = None
    target: int | None = Field(
        None, ge=1, description="Target for CUSTOM goals; ignored for COURSE/MODULE"
    )
    color: str | None = Field(None, max_length=32)


class GoalProgressUpdate(BaseModel):
    """Schema for recording manual progress on a CUSTOM goal."""

    current: int = Field(..., description="New number of completed units")


class GoalProgress(BaseModel):
    """Derived progress state of a goal."""

    current: int
    isDone: bool


class GoalForecast(BaseModel):
    """Forward-looking scheduling signals for a goal."""

    goalId: str
    itemsRemaining: int
    velocityPerWeek: float
    weeksNeeded: float
    predictedCompletionDate: datetime
    isAtRisk: bool
    isUrgent: bool = False


class GoalDetail(BaseModel):
    """A goal together with the hierarchy it tracks and its forecast."""

    goal: Goal
    course: CourseSnapshot | None = None
    module: ModuleSnapshot | None = None
    progressPercent: int
    forecast: GoalForecast


class SyncReport(BaseModel):
    """Outcome of a course-wide goal sync."""

    courseId: str
    matched: int = 0
    updated: list[str] = []
    unchanged: list[str] = []
    failed: list[str] = []
    # Deleted between the read and the write
    vanished: list[str] = []

    @computed_field
    @property
    def failureCount(self) -> int:
        return len(self.failed)
