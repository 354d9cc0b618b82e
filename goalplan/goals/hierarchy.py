"""Read-only tree queries over a GoalPlan.

Every query is fail-soft: unknown ids yield empty lists, ``None`` or ``""``
instead of raising, because lookups run continuously while a plan is being
edited and may briefly see dangling references.
"""

from datetime import date
from typing import Dict, List, Optional, Set

from ..schemas.goal import Goal, GoalNode, GoalPlan
from ..utils.dates import local_today, to_date_string

PATH_SEPARATOR = " > "


def goal_map(plan: GoalPlan) -> Dict[str, Goal]:
    return {goal.id: goal for goal in plan.goals}


def find_goal(goal_id: str, plan: GoalPlan) -> Optional[Goal]:
    for goal in plan.goals:
        if goal.id == goal_id:
            return goal
    return None


def get_goal_children(goal_id: str, plan: GoalPlan) -> List[Goal]:
    """Direct children in ``child_ids`` order, skipping ids with no goal."""
    goals = goal_map(plan)
    goal = goals.get(goal_id)
    if not goal:
        return []
    return [goals[child_id] for child_id in goal.child_ids if child_id in goals]


def get_goal_ancestors(goal_id: str, plan: GoalPlan) -> List[Goal]:
    """Parent, grandparent, ... up to the root; stops at the first missing link."""
    goals = goal_map(plan)
    ancestors: List[Goal] = []
    seen: Set[str] = {goal_id}
    current = goals.get(goal_id)
    while current and current.parent_id:
        parent = goals.get(current.parent_id)
        if not parent or parent.id in seen:
            break
        ancestors.append(parent)
        seen.add(parent.id)
        current = parent
    return ancestors


def get_all_descendant_ids(goal_id: str, plan: GoalPlan) -> List[str]:
    """Transitive closure of ``child_ids`` in depth-first pre-order.

    Child ids are reported even when the child goal itself is missing, so a
    subtree delete also scrubs dangling references. A visited set keeps the
    walk finite if a cycle ever slips into the data.
    """
    goals = goal_map(plan)
    root = goals.get(goal_id)
    if not root:
        return []

    descendant_ids: List[str] = []
    visited: Set[str] = {goal_id}

    def _walk(parent: Goal) -> None:
        for child_id in parent.child_ids:
            if child_id in visited:
                continue
            visited.add(child_id)
            descendant_ids.append(child_id)
            child = goals.get(child_id)
            if child:
                _walk(child)

    _walk(root)
    return descendant_ids


def get_goal_descendants(goal_id: str, plan: GoalPlan) -> List[Goal]:
    goals = goal_map(plan)
    return [goals[gid] for gid in get_all_descendant_ids(goal_id, plan) if gid in goals]


def get_subtree_scope(goal_id: str, plan: GoalPlan) -> Set[str]:
    return {goal_id, *get_all_descendant_ids(goal_id, plan)}


def get_goals_by_level(level: str, plan: GoalPlan) -> List[Goal]:
    return [goal for goal in plan.goals if goal.level == level]


def is_goal_active(goal: Goal, today: Optional[date] = None) -> bool:
    today_str = to_date_string(today or local_today())
    return goal.start_date <= today_str <= goal.end_date


def is_goal_overdue(goal: Goal, today: Optional[date] = None) -> bool:
    today_str = to_date_string(today or local_today())
    return today_str > goal.end_date and goal.status != "completed"


def get_active_goals(plan: GoalPlan, today: Optional[date] = None) -> List[Goal]:
    return [goal for goal in plan.goals if is_goal_active(goal, today)]


def get_overdue_goals(plan: GoalPlan, today: Optional[date] = None) -> List[Goal]:
    return [goal for goal in plan.goals if is_goal_overdue(goal, today)]


def _current_goals_at_level(level: str, plan: GoalPlan, today: Optional[date]) -> List[Goal]:
    return [goal for goal in plan.goals if goal.level == level and is_goal_active(goal, today)]


def get_current_week_goals(plan: GoalPlan, today: Optional[date] = None) -> List[Goal]:
    return _current_goals_at_level("week", plan, today)


def get_current_month_goals(plan: GoalPlan, today: Optional[date] = None) -> List[Goal]:
    return _current_goals_at_level("month", plan, today)


def get_current_quarter_goals(plan: GoalPlan, today: Optional[date] = None) -> List[Goal]:
    return _current_goals_at_level("quarter", plan, today)


def get_goal_path_string(goal_id: str, plan: GoalPlan) -> str:
    """Titles from root to goal, e.g. ``"2025 > Q1 > January > Week 1"``."""
    goal = find_goal(goal_id, plan)
    if not goal:
        return ""
    path = list(reversed(get_goal_ancestors(goal_id, plan))) + [goal]
    return PATH_SEPARATOR.join(item.title for item in path)


def build_goal_tree(plan: GoalPlan) -> List[GoalNode]:
    """Nested nodes for every root tree of the plan, in ``year_goal_ids`` order."""
    goals = goal_map(plan)

    def _build(goal: Goal, depth: int, path: Set[str]) -> GoalNode:
        children = [
            _build(child, depth + 1, path | {child.id})
            for child in get_goal_children(goal.id, plan)
            if child.id not in path
        ]
        return GoalNode(**goal.model_dump(), children=children, depth=depth)

    return [_build(goals[root_id], 0, {root_id}) for root_id in plan.year_goal_ids if root_id in goals]
