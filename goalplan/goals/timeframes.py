"""Calendar windows per goal level and the editor gate run before mutations."""

import calendar
from datetime import date, timedelta
from typing import Tuple

from ..schemas.goal import GOAL_LEVELS, Goal, GoalDateValidation, GoalPlan
from ..utils.dates import parse_date, to_date_string
from .hierarchy import find_goal


def get_goal_timeframe(level: str, base_date: date) -> Tuple[str, str]:
    """Default ``(start, end)`` window of a level around ``base_date``.

    Weeks run Monday to Sunday.
    """
    if level == "year":
        start = date(base_date.year, 1, 1)
        end = date(base_date.year, 12, 31)
    elif level == "quarter":
        first_month = (base_date.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        start = date(base_date.year, first_month, 1)
        end = date(base_date.year, last_month, calendar.monthrange(base_date.year, last_month)[1])
    elif level == "month":
        start = base_date.replace(day=1)
        end = base_date.replace(day=calendar.monthrange(base_date.year, base_date.month)[1])
    elif level == "week":
        start = base_date - timedelta(days=base_date.weekday())
        end = start + timedelta(days=6)
    else:
        start = end = base_date
    return to_date_string(start), to_date_string(end)


def validate_goal_dates(goal: Goal, plan: GoalPlan) -> GoalDateValidation:
    if not goal.parent_id:
        return GoalDateValidation(valid=True)
    parent = find_goal(goal.parent_id, plan)
    if not parent:
        return GoalDateValidation(valid=True)
    if goal.start_date < parent.start_date:
        return GoalDateValidation(valid=False, error=f"Goal cannot start before parent goal ({parent.start_date})")
    if goal.end_date > parent.end_date:
        return GoalDateValidation(valid=False, error=f"Goal cannot end after parent goal ({parent.end_date})")
    return GoalDateValidation(valid=True)


def validate_goal(goal: Goal, plan: GoalPlan) -> GoalDateValidation:
    """Full editor check; returns the first problem found."""
    if not goal.title.strip():
        return GoalDateValidation(valid=False, error="Please enter a goal title")
    start = parse_date(goal.start_date)
    end = parse_date(goal.end_date)
    if not start or not end:
        return GoalDateValidation(valid=False, error="Please select start and end dates")
    if start > end:
        return GoalDateValidation(valid=False, error="Start date must be before end date")

    parent = find_goal(goal.parent_id, plan) if goal.parent_id else None
    if parent and GOAL_LEVELS.index(goal.level) <= GOAL_LEVELS.index(parent.level):
        return GoalDateValidation(
            valid=False,
            error=f"A {goal.level} goal cannot be nested under a {parent.level} goal",
        )
    return validate_goal_dates(goal, plan)
