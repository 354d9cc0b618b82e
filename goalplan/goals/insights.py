from datetime import date, datetime, timedelta
from typing import List, Optional

from ..schemas.goal import Goal, GoalPlan
from ..schemas.task import DayArchive
from ..utils.dates import local_today, to_date_string
from .progress import calculate_actual_progress, calculate_expected_progress, get_progress_status
from .recommendations import days_remaining


def generate_goal_insights(
    goal: Goal,
    plan: GoalPlan,
    archive: List[DayArchive],
    now: Optional[datetime] = None,
) -> List[str]:
    now = now or datetime.now()
    actual = calculate_actual_progress(goal.id, plan, archive, today=now.date())
    expected = calculate_expected_progress(goal, now.date())
    status = get_progress_status(actual, expected).status

    insights: List[str] = []
    if status == "ahead":
        insights.append("Great progress! You're ahead of schedule.")
        if goal.child_ids:
            insights.append("Consider starting work on the next milestone.")
    elif status == "behind":
        insights.append("You're falling behind. Consider adjusting your plan.")
        insights.append("Focus on high-priority tasks to catch up.")
    else:
        insights.append("You're right on track. Keep up the good work!")

    days_left = days_remaining(goal, now)
    if days_left is not None and 0 < days_left <= 7:
        insights.append(f"Only {days_left} day{'' if days_left == 1 else 's'} remaining!")

    if actual == 100:
        insights.append("Goal completed! Excellent work!")
    elif actual == 0 and expected > 20:
        insights.append("Time to get started on this goal.")

    return insights


def calculate_streak(archive: List[DayArchive], today: Optional[date] = None) -> int:
    """Consecutive archived days, ending today, that have a completed task."""
    if not archive:
        return 0
    days = sorted(archive, key=lambda day: day.date, reverse=True)

    streak = 0
    expected = today or local_today()
    current = to_date_string(expected)
    for day in days:
        if day.date != current:
            previous = to_date_string(expected - timedelta(days=1))
            if day.date != previous:
                break
            expected = expected - timedelta(days=1)
            current = previous
        if not any(task.completed for task in day.tasks):
            break
        streak += 1
    return streak
