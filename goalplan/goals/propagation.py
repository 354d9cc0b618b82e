import logging
from datetime import date
from typing import List, Optional, Set

from ..schemas.goal import GoalPlan
from ..schemas.task import DayArchive, Task
from ..utils.dates import now_ms
from .hierarchy import find_goal
from .progress import calculate_actual_progress

logger = logging.getLogger(__name__)


def _with_progress(plan: GoalPlan, goal_id: str, progress: int, stamp: int) -> GoalPlan:
    goals = [
        goal.model_copy(update={"completion_percentage": progress, "updated_at": stamp}) if goal.id == goal_id else goal
        for goal in plan.goals
    ]
    return plan.model_copy(update={"goals": goals, "updated_at": stamp})


def update_goal_progress_recursive(
    goal_id: str,
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    today: Optional[date] = None,
) -> GoalPlan:
    """Recompute ``completion_percentage`` for a goal and each of its ancestors.

    Every step is a full subtree recount against the plan produced by the
    previous step. An unknown goal id returns ``plan`` unchanged.
    """
    visited: Set[str] = set()
    current_id: Optional[str] = goal_id
    updated = plan
    while current_id and current_id not in visited:
        goal = find_goal(current_id, updated)
        if not goal:
            break
        visited.add(current_id)
        progress = calculate_actual_progress(current_id, updated, archive, current_tasks, today)
        updated = _with_progress(updated, current_id, progress, now_ms())
        logger.debug("Goal %s progress %s%%", current_id, progress)
        current_id = goal.parent_id
    return updated


def refresh_plan_progress(
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    today: Optional[date] = None,
) -> GoalPlan:
    """Recompute every goal of the plan, e.g. after loading a new day's archive."""
    stamp = now_ms()
    goals = [
        goal.model_copy(
            update={
                "completion_percentage": calculate_actual_progress(goal.id, plan, archive, current_tasks, today),
                "updated_at": stamp,
            }
        )
        for goal in plan.goals
    ]
    return plan.model_copy(update={"goals": goals, "updated_at": stamp})
