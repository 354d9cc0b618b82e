"""Application-level context: known plans, the single active plan, day state.

The session serialises mutations onto one timeline. After each mutation it
re-runs progress propagation for the affected chain and then hands the new
plan to every subscribed listener (typically the persistence collaborator).
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set

from ..errors import GoalValidationError, PlanNotFoundError
from ..schemas.goal import Goal, GoalPlan, GoalRecommendation
from ..schemas.task import DayArchive, Task
from ..utils.dates import now_ms
from . import store
from .hierarchy import find_goal
from .propagation import refresh_plan_progress, update_goal_progress_recursive
from .recommendations import filter_dismissed, get_goal_recommendations
from .timeframes import validate_goal

logger = logging.getLogger(__name__)

Listener = Callable[[GoalPlan], None]


class GoalSession:
    def __init__(self, plans: Optional[List[GoalPlan]] = None) -> None:
        self._plans: Dict[str, GoalPlan] = {}
        self._listeners: Set[Listener] = set()
        self.active_plan_id: Optional[str] = None
        self.archive: List[DayArchive] = []
        self.current_tasks: List[Task] = []
        for plan in plans or []:
            self._plans[plan.id] = plan
            if plan.is_active and self.active_plan_id is None:
                self.active_plan_id = plan.id

    # -- listeners -------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.add(listener)

        def unsubscribe() -> None:
            self._listeners.discard(listener)

        return unsubscribe

    def _commit(self, plan: GoalPlan) -> GoalPlan:
        self._plans[plan.id] = plan
        for listener in list(self._listeners):
            try:
                listener(plan)
            except Exception:  # pylint: disable=broad-except
                # The in-memory plan stays authoritative; persistence retries on the next mutation.
                logger.exception("Plan listener failed for plan %s", plan.id)
        return plan

    # -- plans -----------------------------------------------------------

    @property
    def plans(self) -> List[GoalPlan]:
        return list(self._plans.values())

    def get_plan(self, plan_id: str) -> Optional[GoalPlan]:
        return self._plans.get(plan_id)

    @property
    def active_plan(self) -> Optional[GoalPlan]:
        if not self.active_plan_id:
            return None
        return self._plans.get(self.active_plan_id)

    def set_active_plan(self, plan_id: str) -> GoalPlan:
        if plan_id not in self._plans:
            raise PlanNotFoundError(f"Goal plan {plan_id} not found")
        for plan in list(self._plans.values()):
            should_be_active = plan.id == plan_id
            if plan.is_active != should_be_active:
                self._commit(plan.model_copy(update={"is_active": should_be_active, "updated_at": now_ms()}))
        self.active_plan_id = plan_id
        return self._plans[plan_id]

    def add_plan(self, plan: GoalPlan, activate: bool = True) -> GoalPlan:
        self._commit(plan.model_copy(update={"is_active": False}) if activate else plan)
        if activate:
            return self.set_active_plan(plan.id)
        return plan

    def create_plan(self, title: str, goals: Optional[List[Goal]] = None) -> GoalPlan:
        return self.add_plan(store.new_plan(title, goals))

    def delete_plan(self, plan_id: str) -> bool:
        removed = self._plans.pop(plan_id, None)
        if removed is None:
            return False
        if self.active_plan_id == plan_id:
            self.active_plan_id = None
        logger.info("Deleted goal plan %s", plan_id)
        return True

    def _require_active(self) -> GoalPlan:
        plan = self.active_plan
        if not plan:
            raise PlanNotFoundError("No active goal plan")
        return plan

    # -- goals -----------------------------------------------------------

    def _propagate(self, goal_id: Optional[str], plan: GoalPlan) -> GoalPlan:
        if not goal_id:
            return plan
        return update_goal_progress_recursive(goal_id, plan, self.archive, self.current_tasks)

    def create_goal(self, goal: Goal) -> GoalPlan:
        plan = self.active_plan
        implicit = plan is None
        if implicit:
            # First goal with no active plan: the plan is built around it.
            plan = store.new_plan(goal.title)

        verdict = validate_goal(goal, plan)
        if not verdict.valid:
            raise GoalValidationError(verdict.error)

        updated = store.create_goal(goal, plan)
        if implicit:
            updated = updated.model_copy(update={"year_goal_id": goal.id, "year_goal_ids": [goal.id]})
            updated = self.add_plan(updated)
        return self._commit(self._propagate(goal.id, updated))

    def update_goal(self, goal: Goal) -> GoalPlan:
        plan = self._require_active()
        existing = find_goal(goal.id, plan)
        if not existing:
            return plan
        # Level and linkage are fixed at creation, so validate against the stored parent.
        candidate = goal.model_copy(
            update={"parent_id": existing.parent_id, "level": existing.level, "updated_at": now_ms()}
        )
        verdict = validate_goal(candidate, plan)
        if not verdict.valid:
            raise GoalValidationError(verdict.error)
        updated = store.update_goal(candidate, plan)
        return self._commit(self._propagate(goal.id, updated))

    def delete_goal(self, goal_id: str) -> GoalPlan:
        plan = self._require_active()
        goal = find_goal(goal_id, plan)
        if not goal:
            return plan
        updated = store.delete_goal(goal_id, plan)
        return self._commit(self._propagate(goal.parent_id, updated))

    # -- day state -------------------------------------------------------

    def set_day_state(self, archive: List[DayArchive], current_tasks: List[Task]) -> Optional[GoalPlan]:
        self.archive = list(archive)
        self.current_tasks = list(current_tasks)
        plan = self.active_plan
        if not plan:
            return None
        return self._commit(refresh_plan_progress(plan, self.archive, self.current_tasks))

    def refresh_goal(self, goal_id: str) -> GoalPlan:
        """Re-run propagation after a linked task changed its completion state."""
        plan = self._require_active()
        return self._commit(self._propagate(goal_id, plan))

    def recommendations(
        self, dismissed_goal_ids: Optional[List[str]] = None, now: Optional[datetime] = None
    ) -> List[GoalRecommendation]:
        plan = self.active_plan
        if not plan:
            return []
        return filter_dismissed(get_goal_recommendations(plan, self.archive, self.current_tasks, now), dismissed_goal_ids)
