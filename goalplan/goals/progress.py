"""Actual vs. expected progress for a goal.

Actual progress counts linked tasks across the goal's whole subtree: every
task linked to the goal or to any descendant weighs the same, so a parent's
percentage is a flat count over its subtree and not an average of its
children's percentages. Expected progress is the share of the goal's calendar
window that has elapsed.
"""

import math
from datetime import date
from typing import Iterable, List, Optional

from ..schemas.goal import Goal, GoalPlan, ProgressStatus
from ..schemas.task import DayArchive, Task
from ..utils.dates import local_date_from_ms, local_today, parse_date
from .hierarchy import find_goal, get_subtree_scope

# Points of difference between actual and expected progress before a goal
# counts as ahead or behind. Shared with the recommendation engine.
PROGRESS_TOLERANCE = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_task_completed_today(task: Task, today: Optional[date] = None) -> bool:
    """Completion rule for a live (not yet archived) task, by task type."""
    if task.type == "duration":
        if not task.sessions or not task.target:
            return False
        total_minutes = sum(session.duration for session in task.sessions) // 60
        return total_minutes >= task.target.value
    if task.type == "count":
        if not task.count_logs or not task.target:
            return False
        return sum(log.count for log in task.count_logs) >= task.target.value
    if task.type in ("completion", "homework"):
        if not task.completions:
            return False
        today = today or local_today()
        return any(log.completed and local_date_from_ms(log.date) == today for log in task.completions)
    return False


def count_linked_tasks(
    scope: Iterable[str],
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    today: Optional[date] = None,
) -> tuple:
    """Return ``(total, completed)`` for tasks whose goal link falls in ``scope``."""
    scope = set(scope)
    total = 0
    completed = 0

    for day in archive:
        for archived in day.tasks:
            if archived.linked_goal_id and archived.linked_goal_id in scope:
                total += 1
                if archived.completed:
                    completed += 1

    for task in current_tasks or []:
        if task.linked_goal_id and task.linked_goal_id in scope:
            total += 1
            if is_task_completed_today(task, today):
                completed += 1

    return total, completed


def calculate_actual_progress(
    goal_id: str,
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    today: Optional[date] = None,
) -> int:
    if not find_goal(goal_id, plan):
        return 0
    total, completed = count_linked_tasks(get_subtree_scope(goal_id, plan), archive, current_tasks, today)
    if total == 0:
        return 0
    return round_half_up(100 * completed / total)


def calculate_expected_progress(goal: Goal, today: Optional[date] = None) -> int:
    start = parse_date(goal.start_date)
    end = parse_date(goal.end_date)
    if not start or not end:
        return 0
    today = today or local_today()
    if today < start:
        return 0
    if today > end:
        return 100
    total_days = (end - start).days + 1
    elapsed_days = (today - start).days
    return round_half_up(100 * elapsed_days / total_days)


def get_progress_status(actual: int, expected: int) -> ProgressStatus:
    difference = actual - expected
    if difference >= PROGRESS_TOLERANCE:
        return ProgressStatus(status="ahead", message=f"{abs(difference)}% ahead of schedule")
    if difference <= -PROGRESS_TOLERANCE:
        return ProgressStatus(status="behind", message=f"{abs(difference)}% behind schedule")
    return ProgressStatus(status="on-track", message="On track")
