"""
Forecast Engine: completion-date prediction and deadline signals.

All functions here are pure reads of a goal; nothing is persisted.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

from ..models.goals import Goal, GoalForecast
from ..models.hierarchy import TopicSnapshot
from ..utils.exceptions import ValidationError

# Units per week assumed when no observed velocity is used
DEFAULT_VELOCITY_PER_WEEK = 2.5
DEFAULT_URGENCY_WINDOW = timedelta(days=3)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def forecast(
    goal: Goal,
    velocity_per_week: float = DEFAULT_VELOCITY_PER_WEEK,
    now: datetime | None = None,
    urgency_window: timedelta = DEFAULT_URGENCY_WINDOW,
) -> GoalForecast:
    """
    Predict when ``goal`` will be completed at ``velocity_per_week``.

    The goal is at risk when it has a deadline and the predicted completion
    date falls after it. A goal with nothing remaining is predicted for
    ``now`` and is never at risk.

    Raises:
        ValidationError: velocity is not a strictly positive number
    """
    if velocity_per_week is None or not math.isfinite(velocity_per_week) or velocity_per_week <= 0:
        raise ValidationError(
            f"Velocity must be a positive number of units per week, got {velocity_per_week!r}"
        )

    now = _as_utc(now or datetime.now(UTC))
    items_remaining = max(0, goal.target - goal.current)
    weeks_needed = items_remaining / velocity_per_week
    predicted = now + timedelta(days=weeks_needed * 7)

    is_at_risk = (
        items_remaining > 0
        and goal.deadline is not None
        and predicted > _as_utc(goal.deadline)
    )

    return GoalForecast(
        goalId=goal.id,
        itemsRemaining=items_remaining,
        velocityPerWeek=velocity_per_week,
        weeksNeeded=weeks_needed,
        predictedCompletionDate=predicted,
        isAtRisk=is_at_risk,
        isUrgent=is_deadline_urgent(goal, now, urgency_window),
    )


def is_deadline_urgent(
    goal: Goal,
    now: datetime | None = None,
    window: timedelta = DEFAULT_URGENCY_WINDOW,
) -> bool:
    """True for an unfinished goal whose deadline is within ``window`` (or already past)."""
    if goal.isDone or goal.deadline is None:
        return False
    now = _as_utc(now or datetime.now(UTC))
    return _as_utc(goal.deadline) - now < window


def observed_velocity(
    topics: list[TopicSnapshot],
    now: datetime | None = None,
    window_weeks: int = 4,
) -> float | None:
    """
    Units completed per week over the last ``window_weeks`` weeks.

    Counts completed topics whose completedAt falls inside the window.
    Returns None when there is no such completion, so callers can fall back
    to the default velocity.
    """
    if window_weeks < 1:
        raise ValidationError("Velocity window must be at least one week")

    now = _as_utc(now or datetime.now(UTC))
    window_start = now - timedelta(weeks=window_weeks)

    completed_in_window = sum(
        1
        for topic in topics
        if topic.isCompleted
        and topic.completedAt is not None
        and window_start <= _as_utc(topic.completedAt) <= now
    )
    if completed_in_window == 0:
        return None
    return completed_in_window / window_weeks


def progress_percent(goal: Goal) -> int:
    if goal.target <= 0:
        return 0
    # Halves round up
    return min(100, (200 * goal.current + goal.target) // (2 * goal.target))
