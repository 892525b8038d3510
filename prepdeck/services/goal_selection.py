"""
Imminent Goal Selector.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

from collections.abc import Sequence

from ..models.goals import Goal


def select_imminent(goals: Sequence[Goal]) -> Goal | None:
    """
    Pick the single goal to surface on the dashboard.

    1. Among unfinished goals with a positive target, the one with the fewest
       units remaining. Ties keep input order.
    2. Otherwise, the most recently created finished goal.
    3. Otherwise None.
    """
    active = [goal for goal in goals if not goal.isDone and goal.target > 0]
    if active:
        return sorted(active, key=lambda goal: goal.target - goal.current)[0]

    finished = [goal for goal in goals if goal.isDone]
    if finished:
        return sorted(finished, key=lambda goal: goal.createdAt, reverse=True)[0]

    return None
