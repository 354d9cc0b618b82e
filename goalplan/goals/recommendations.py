"""Attention scan and ranked recommendations for goals falling behind."""

import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from ..schemas.goal import Goal, GoalPlan, GoalRecommendation
from ..schemas.task import DayArchive, Task, TaskTarget
from ..utils.dates import DAY_SECONDS, now_ms, parse_date, start_of_day
from ..utils.ids import recommended_task_id
from .hierarchy import get_goal_children, get_goal_path_string
from .progress import PROGRESS_TOLERANCE, calculate_actual_progress, calculate_expected_progress

ATTENTION_WINDOW_DAYS = 7
CRITICAL_DAYS = 2
CRITICAL_GAP = 30
HIGH_GAP = 20
MAX_SUGGESTED_ACTIONS = 3
MAX_TASK_SUGGESTIONS = 4
URGENCY_RANK = {"critical": 0, "high": 1, "medium": 2}

# Keyword groups sniffed in a goal description, applied in this order.
_KEYWORD_SUGGESTIONS = [
    (("learn", "study"), "Study session", "Practice exercises"),
    (("build", "create"), "Development work", "Testing & review"),
    (("write", "document"), "Writing session", "Edit & proofread"),
]

_LEVEL_SUGGESTIONS = {
    "week": ["Daily progress check", "Research for", "Planning session"],
    "day": ["Work session", "Review progress"],
    "month": ["Weekly milestone", "Strategic planning"],
}


def _time_until_end(goal: Goal, now: datetime) -> Optional[timedelta]:
    end = parse_date(goal.end_date)
    if not end:
        return None
    return start_of_day(end) - now


def days_remaining(goal: Goal, now: Optional[datetime] = None) -> Optional[int]:
    remaining = _time_until_end(goal, now or datetime.now())
    if remaining is None:
        return None
    return math.ceil(remaining.total_seconds() / DAY_SECONDS)


def _progress_gap(
    goal: Goal,
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]],
    now: datetime,
) -> int:
    today = now.date()
    actual = calculate_actual_progress(goal.id, plan, archive, current_tasks, today)
    expected = calculate_expected_progress(goal, today)
    return expected - actual


def get_goals_needing_attention(
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    now: Optional[datetime] = None,
) -> List[Goal]:
    """Unfinished goals that end within a week or trail expected progress."""
    now = now or datetime.now()
    window = timedelta(days=ATTENTION_WINDOW_DAYS)
    flagged: List[Goal] = []
    for goal in plan.goals:
        if goal.status == "completed":
            continue
        remaining = _time_until_end(goal, now)
        if remaining is None:
            continue
        ending_soon = timedelta(0) <= remaining <= window
        behind = _progress_gap(goal, plan, archive, current_tasks, now) >= PROGRESS_TOLERANCE
        if ending_soon or behind:
            flagged.append(goal)
    return flagged


def classify_urgency(days_left: int, progress_gap: int) -> str:
    if days_left <= CRITICAL_DAYS or progress_gap >= CRITICAL_GAP:
        return "critical"
    if days_left <= ATTENTION_WINDOW_DAYS or progress_gap >= HIGH_GAP:
        return "high"
    return "medium"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def generate_suggested_actions(
    goal: Goal,
    plan: GoalPlan,
    progress_gap: int,
    days_left: int,
    current_tasks: Optional[List[Task]] = None,
) -> List[str]:
    actions: List[str] = []

    linked = [task for task in current_tasks or [] if task.linked_goal_id == goal.id]
    if linked:
        actions.append(f"Complete {_plural(len(linked), 'pending task')}")
    else:
        actions.append(f'Create tasks for "{goal.title}"')

    if days_left <= CRITICAL_DAYS:
        actions.append("Focus on this goal today")
    elif days_left <= ATTENTION_WINDOW_DAYS:
        actions.append("Schedule daily work sessions")

    if progress_gap >= CRITICAL_GAP:
        actions.append("Consider breaking into smaller steps")
        actions.append("Dedicate focused time blocks")
    elif progress_gap >= HIGH_GAP:
        actions.append("Increase daily time allocation")

    children = get_goal_children(goal.id, plan)
    unfinished = len([child for child in children if child.status != "completed"])
    if unfinished:
        actions.append(f"Complete {_plural(unfinished, 'sub-goal')}")

    return actions[:MAX_SUGGESTED_ACTIONS]


def get_goal_recommendations(
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    now: Optional[datetime] = None,
) -> List[GoalRecommendation]:
    """Recommendations ordered by urgency tier, then by fewest days remaining."""
    now = now or datetime.now()
    recommendations: List[GoalRecommendation] = []
    for goal in get_goals_needing_attention(plan, archive, current_tasks, now):
        gap = _progress_gap(goal, plan, archive, current_tasks, now)
        days_left = days_remaining(goal, now)
        recommendations.append(
            GoalRecommendation(
                goal=goal,
                urgency=classify_urgency(days_left, gap),
                progress_gap=gap,
                days_remaining=days_left,
                suggested_actions=generate_suggested_actions(goal, plan, gap, days_left, current_tasks),
            )
        )
    return sorted(recommendations, key=lambda rec: (URGENCY_RANK[rec.urgency], rec.days_remaining))


def filter_dismissed(
    recommendations: List[GoalRecommendation], dismissed_goal_ids: Optional[Iterable[str]] = None
) -> List[GoalRecommendation]:
    dismissed = set(dismissed_goal_ids or [])
    return [rec for rec in recommendations if rec.goal.id not in dismissed]


def generate_task_suggestions(goal: Goal) -> List[str]:
    """Template task names for a goal, keyed by level and description keywords."""
    suggestions = [
        f"{prefix}: {goal.title}" for prefix in _LEVEL_SUGGESTIONS.get(goal.level, ["Action item"])
    ]
    description = goal.description.lower()
    for keywords, leading, trailing in _KEYWORD_SUGGESTIONS:
        if any(keyword in description for keyword in keywords):
            suggestions.insert(0, f"{leading}: {goal.title}")
            suggestions.append(f"{trailing}: {goal.title}")
    return suggestions[:MAX_TASK_SUGGESTIONS]


def _task_stub(rec: GoalRecommendation, plan: GoalPlan, name: str) -> Task:
    if rec.urgency == "critical":
        priority, importance, minutes = "high", 8, 60
    elif rec.urgency == "high":
        priority, importance, minutes = "medium", 6, 30
    else:
        priority, importance, minutes = "low", 4, 30
    path = get_goal_path_string(rec.goal.id, plan)
    return Task(
        id=recommended_task_id(rec.goal.id),
        name=name,
        type="duration",
        priority=priority,
        importance=importance,
        target=TaskTarget(value=minutes, unit="minutes"),
        notes=(
            f"Auto-suggested for: {path}\n\n"
            f"Goal is {rec.progress_gap}% behind schedule with {rec.days_remaining} days remaining."
        ),
        sessions=[],
        created_at=now_ms(),
        linked_goal_id=rec.goal.id,
        goal_context=path,
    )


def get_recommended_tasks_from_goals(
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    dismissed_goal_ids: Optional[Iterable[str]] = None,
    limit: int = 3,
    now: Optional[datetime] = None,
) -> List[Task]:
    """One ready-to-add task for each of the most urgent, non-dismissed goals."""
    recommendations = filter_dismissed(get_goal_recommendations(plan, archive, current_tasks, now), dismissed_goal_ids)
    tasks: List[Task] = []
    for rec in recommendations[:limit]:
        suggestions = generate_task_suggestions(rec.goal)
        if suggestions:
            tasks.append(_task_stub(rec, plan, suggestions[0]))
    return tasks


def is_goal_urgent(
    goal: Goal,
    plan: GoalPlan,
    archive: List[DayArchive],
    current_tasks: Optional[List[Task]] = None,
    now: Optional[datetime] = None,
) -> bool:
    now = now or datetime.now()
    days_left = days_remaining(goal, now)
    if days_left is None:
        return False
    gap = _progress_gap(goal, plan, archive, current_tasks, now)
    return (days_left <= ATTENTION_WINDOW_DAYS and gap >= PROGRESS_TOLERANCE) or gap >= HIGH_GAP
