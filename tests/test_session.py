import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from goalplan.errors import GoalValidationError, PlanNotFoundError  # noqa: E402
from goalplan.goals import store  # noqa: E402
from goalplan.goals.hierarchy import find_goal  # noqa: E402
from goalplan.goals.session import GoalSession  # noqa: E402
from goalplan.schemas.task import ArchivedTask, DayArchive  # noqa: E402


def year_goal(title="Run a marathon"):
    return store.new_goal(title, "year", "2025-01-01", "2025-12-31")


def month_goal(parent_id, title="Base miles", start="2025-01-01", end="2025-01-31"):
    return store.new_goal(title, "month", start, end, parent_id=parent_id)


def test_first_goal_creates_active_plan_around_it():
    session = GoalSession()
    saved = []
    session.subscribe(saved.append)

    goal = year_goal()
    plan = session.create_goal(goal)

    assert session.active_plan_id == plan.id
    assert plan.is_active
    assert plan.title == "Run a marathon"
    assert plan.year_goal_ids == [goal.id]
    assert plan.year_goal_id == goal.id
    assert saved[-1] == plan


def test_invalid_goal_is_rejected_before_any_mutation():
    session = GoalSession()
    with pytest.raises(GoalValidationError, match="Please enter a goal title"):
        session.create_goal(year_goal(title="   "))
    assert session.plans == []
    assert session.active_plan is None


def test_child_outside_parent_window_is_rejected():
    session = GoalSession()
    root = year_goal()
    session.create_goal(root)
    with pytest.raises(GoalValidationError, match=r"cannot end after parent goal \(2025-12-31\)"):
        session.create_goal(month_goal(root.id, end="2026-01-31"))
    assert find_goal(root.id, session.active_plan).child_ids == []


def test_only_one_plan_is_active():
    session = GoalSession()
    first = session.create_plan("First")
    second = session.create_plan("Second")

    assert session.active_plan_id == second.id
    assert not session.get_plan(first.id).is_active

    session.set_active_plan(first.id)
    assert [plan.is_active for plan in (session.get_plan(first.id), session.get_plan(second.id))] == [True, False]

    with pytest.raises(PlanNotFoundError):
        session.set_active_plan("plan-missing")


def test_loaded_plans_restore_active_id():
    active = store.new_plan("Active", is_active=True)
    session = GoalSession([store.new_plan("Old"), active])
    assert session.active_plan_id == active.id


def test_update_goal_keeps_parent_and_refreshes_progress():
    session = GoalSession()
    root = year_goal()
    session.create_goal(root)
    child = month_goal(root.id)
    session.create_goal(child)

    plan = session.update_goal(child.model_copy(update={"title": "Long runs", "parent_id": None}))
    updated = find_goal(child.id, plan)
    assert updated.title == "Long runs"
    assert updated.parent_id == root.id
    assert find_goal(root.id, plan).child_ids == [child.id]


def test_update_goal_cannot_change_level():
    session = GoalSession()
    root = year_goal()
    session.create_goal(root)
    child = month_goal(root.id)
    session.create_goal(child)

    plan = session.update_goal(root.model_copy(update={"level": "day", "title": "Marathon"}))
    levels = {goal.id: goal.level for goal in plan.goals}
    assert levels == {root.id: "year", child.id: "month"}
    assert find_goal(root.id, plan).title == "Marathon"


def test_update_goal_runs_editor_gate():
    session = GoalSession()
    root = year_goal()
    session.create_goal(root)
    child = month_goal(root.id)
    session.create_goal(child)

    with pytest.raises(GoalValidationError, match="Start date must be before end date"):
        session.update_goal(child.model_copy(update={"start_date": "2025-02-01"}))


def test_mutations_without_active_plan_raise():
    session = GoalSession()
    with pytest.raises(PlanNotFoundError):
        session.delete_goal("anything")


def test_day_state_and_delete_propagate_to_parent():
    session = GoalSession()
    root = year_goal()
    session.create_goal(root)
    child = month_goal(root.id)
    session.create_goal(child)

    archive = [
        DayArchive(
            date="2025-01-03",
            tasks=[
                ArchivedTask(task_id="t1", linked_goal_id=child.id, completed=True),
                ArchivedTask(task_id="t2", linked_goal_id=root.id, completed=False),
            ],
        )
    ]
    plan = session.set_day_state(archive, [])
    assert find_goal(root.id, plan).completion_percentage == 50
    assert find_goal(child.id, plan).completion_percentage == 100

    plan = session.delete_goal(child.id)
    assert find_goal(child.id, plan) is None
    assert find_goal(root.id, plan).completion_percentage == 0


def test_refresh_goal_and_recommendations():
    session = GoalSession()
    root = year_goal()
    session.create_goal(root)
    session.archive = [
        DayArchive(date="2025-01-03", tasks=[ArchivedTask(task_id="t1", linked_goal_id=root.id, completed=True)])
    ]
    plan = session.refresh_goal(root.id)
    assert find_goal(root.id, plan).completion_percentage == 100
    assert GoalSession().recommendations() == []


def test_listener_failure_does_not_break_mutation():
    session = GoalSession()

    def broken(plan):
        raise RuntimeError("disk full")

    session.subscribe(broken)
    plan = session.create_goal(year_goal())
    assert session.active_plan == plan


def test_unsubscribe_stops_notifications():
    session = GoalSession()
    saved = []
    unsubscribe = session.subscribe(saved.append)
    unsubscribe()
    session.create_goal(year_goal())
    assert saved == []


def test_delete_plan_clears_active_id():
    session = GoalSession()
    plan = session.create_goal(year_goal())
    assert session.delete_plan(plan.id)
    assert session.active_plan is None
    assert not session.delete_plan(plan.id)
