"""Invariant-preserving mutators for a GoalPlan.

Each mutator returns a new plan and never edits the one it was given, so a
caller (or an observer holding the old snapshot) never sees a half-applied
change. Inputs are trusted: date containment and level nesting are checked by
the editor gate in ``timeframes`` before a mutator is called.
"""

import logging
from typing import Iterable, List, Optional

from ..schemas.goal import GOAL_LEVELS, Goal, GoalPlan, GoalPlanIndex
from ..utils.dates import now_ms
from ..utils.ids import new_goal_id, new_plan_id
from .hierarchy import find_goal, get_all_descendant_ids

logger = logging.getLogger(__name__)

PLAN_STORAGE_PREFIX = "goal-plan-"


def child_level(level: str) -> str:
    index = GOAL_LEVELS.index(level)
    return GOAL_LEVELS[min(index + 1, len(GOAL_LEVELS) - 1)]


def new_goal(
    title: str,
    level: str,
    start_date: str,
    end_date: str,
    description: str = "",
    parent_id: Optional[str] = None,
    **extra,
) -> Goal:
    stamp = now_ms()
    return Goal(
        id=extra.pop("id", None) or new_goal_id(level),
        title=title.strip(),
        description=description.strip(),
        level=level,
        parent_id=parent_id,
        start_date=start_date,
        end_date=end_date,
        created_at=stamp,
        updated_at=stamp,
        **extra,
    )


def new_plan(title: str, goals: Optional[Iterable[Goal]] = None, is_active: bool = False, **extra) -> GoalPlan:
    goals = list(goals or [])
    roots = [goal.id for goal in goals if goal.level == "year" and not goal.parent_id]
    stamp = now_ms()
    return GoalPlan(
        id=extra.pop("id", None) or new_plan_id(),
        title=title,
        year_goal_id=roots[0] if roots else None,
        year_goal_ids=roots,
        goals=goals,
        interview_date=extra.pop("interview_date", stamp),
        is_active=is_active,
        created_at=stamp,
        updated_at=stamp,
        **extra,
    )


def create_goal(goal: Goal, plan: GoalPlan) -> GoalPlan:
    goals: List[Goal] = list(plan.goals)
    if goal.parent_id:
        goals = [
            existing.model_copy(update={"child_ids": existing.child_ids + [goal.id]})
            if existing.id == goal.parent_id and goal.id not in existing.child_ids
            else existing
            for existing in goals
        ]
    goals.append(goal)

    update = {"goals": goals, "updated_at": now_ms()}
    if goal.level == "year" and not goal.parent_id and goal.id not in plan.year_goal_ids:
        update["year_goal_ids"] = plan.year_goal_ids + [goal.id]
        if not plan.year_goal_id:
            update["year_goal_id"] = goal.id
    return plan.model_copy(update=update)


def update_goal(goal: Goal, plan: GoalPlan) -> GoalPlan:
    """Replace the stored goal with the same id, keeping its level and tree linkage."""
    existing = find_goal(goal.id, plan)
    if not existing:
        return plan
    replacement = goal.model_copy(
        update={"parent_id": existing.parent_id, "child_ids": list(existing.child_ids), "level": existing.level}
    )
    goals = [replacement if item.id == goal.id else item for item in plan.goals]
    return plan.model_copy(update={"goals": goals, "updated_at": now_ms()})


def delete_goal(goal_id: str, plan: GoalPlan) -> GoalPlan:
    """Remove a goal and its entire subtree in one pass."""
    doomed = {goal_id, *get_all_descendant_ids(goal_id, plan)}
    goals = []
    for goal in plan.goals:
        if goal.id in doomed:
            continue
        if any(child_id in doomed for child_id in goal.child_ids):
            goal = goal.model_copy(update={"child_ids": [cid for cid in goal.child_ids if cid not in doomed]})
        goals.append(goal)

    removed = len(plan.goals) - len(goals)
    logger.debug("Deleted goal %s with %d goal(s) in its subtree", goal_id, removed)

    roots = [root_id for root_id in plan.year_goal_ids if root_id not in doomed]
    update = {"goals": goals, "year_goal_ids": roots, "updated_at": now_ms()}
    if plan.year_goal_id in doomed:
        update["year_goal_id"] = roots[0] if roots else None
    return plan.model_copy(update=update)


def plan_index_entry(plan: GoalPlan) -> GoalPlanIndex:
    root_id = plan.year_goal_ids[0] if plan.year_goal_ids else plan.year_goal_id
    root = find_goal(root_id, plan) if root_id else None
    return GoalPlanIndex(
        id=plan.id,
        title=plan.title,
        year_goal_title=root.title if root else plan.title,
        is_active=plan.is_active,
        created_at=plan.created_at,
        storage_key=f"{PLAN_STORAGE_PREFIX}{plan.id}",
    )
