import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from goalplan.goals import store  # noqa: E402
from goalplan.goals.hierarchy import find_goal  # noqa: E402
from goalplan.schemas.goal import Goal, GoalPlan  # noqa: E402


def make_goal(goal_id, level="year", start="2025-01-01", end="2025-12-31", parent_id=None, child_ids=None, **extra):
    return Goal(
        id=goal_id,
        title=extra.pop("title", goal_id),
        level=level,
        start_date=start,
        end_date=end,
        parent_id=parent_id,
        child_ids=child_ids or [],
        **extra,
    )


def quarter_tree():
    """Year Y > quarter Q > 3 months > 3 weeks each, plus a second root Z > Z-q."""
    goals = [make_goal("Y", child_ids=["Q"]), make_goal("Q", "quarter", "2025-01-01", "2025-03-31", "Y")]
    month_ids = []
    for m in range(3):
        month_id = f"M{m}"
        week_ids = [f"W{m}{w}" for w in range(3)]
        month_ids.append(month_id)
        goals.append(make_goal(month_id, "month", "2025-01-01", "2025-03-31", "Q", week_ids))
        goals.extend(make_goal(week_id, "week", "2025-01-06", "2025-01-12", month_id) for week_id in week_ids)
    goals[1] = goals[1].model_copy(update={"child_ids": month_ids})
    goals.append(make_goal("Z", child_ids=["Z-q"]))
    goals.append(make_goal("Z-q", "quarter", "2025-01-01", "2025-03-31", "Z"))
    return GoalPlan(id="plan-1", title="Plan", year_goal_id="Y", year_goal_ids=["Y", "Z"], goals=goals)


def test_create_root_goal_registers_year_root_once():
    plan = store.new_plan("2025")
    goal = make_goal("Y")
    plan = store.create_goal(goal, plan)
    plan = store.create_goal(goal.model_copy(), plan)

    assert plan.year_goal_ids == ["Y"]
    assert plan.year_goal_id == "Y"


def test_create_child_goal_links_parent_without_duplicates():
    plan = store.create_goal(make_goal("Y"), store.new_plan("2025"))
    child = make_goal("Q", "quarter", "2025-01-01", "2025-03-31", "Y")
    plan = store.create_goal(child, plan)
    plan = store.create_goal(child, plan)

    assert find_goal("Y", plan).child_ids == ["Q"]
    assert plan.year_goal_ids == ["Y"]


def test_create_goal_returns_new_plan_object():
    plan = store.new_plan("2025")
    updated = store.create_goal(make_goal("Y"), plan)
    assert plan.goals == []
    assert len(updated.goals) == 1


def test_update_goal_keeps_tree_linkage():
    plan = quarter_tree()
    edited = find_goal("Q", plan).model_copy(update={"title": "Renamed", "parent_id": "Z", "child_ids": []})
    plan = store.update_goal(edited, plan)

    goal = find_goal("Q", plan)
    assert goal.title == "Renamed"
    assert goal.parent_id == "Y"
    assert goal.child_ids == ["M0", "M1", "M2"]


def test_update_missing_goal_is_noop():
    plan = quarter_tree()
    assert store.update_goal(make_goal("ghost"), plan) is plan


def test_delete_quarter_removes_whole_subtree():
    plan = quarter_tree()
    removed_ids = {"Q", "M0", "M1", "M2"} | {f"W{m}{w}" for m in range(3) for w in range(3)}

    updated = store.delete_goal("Q", plan)

    assert len(plan.goals) - len(updated.goals) == 13
    remaining_ids = {goal.id for goal in updated.goals}
    assert not remaining_ids & removed_ids
    for goal in updated.goals:
        assert not set(goal.child_ids) & removed_ids


def test_delete_one_root_leaves_other_root_untouched():
    plan = quarter_tree()
    untouched = [goal for goal in plan.goals if goal.id in ("Z", "Z-q")]

    updated = store.delete_goal("Y", plan)

    assert updated.goals == untouched
    assert updated.year_goal_ids == ["Z"]
    assert updated.year_goal_id == "Z"


def test_delete_missing_goal_keeps_goals():
    plan = quarter_tree()
    assert store.delete_goal("ghost", plan).goals == plan.goals


def test_new_plan_collects_year_roots_and_defaults():
    plan = store.new_plan("2025", [make_goal("Y"), make_goal("Q", "quarter", parent_id="Y")])
    assert plan.year_goal_ids == ["Y"]
    assert plan.ai_model == "manual"
    assert plan.id.startswith("plan-")
    assert plan.is_active is False


def test_new_goal_generates_level_scoped_id():
    goal = store.new_goal("  Ship it  ", "week", "2025-01-06", "2025-01-12")
    assert goal.id.startswith("goal-week-")
    assert goal.title == "Ship it"
    assert goal.created_at == goal.updated_at > 0


def test_custom_fields_pass_through():
    goal = make_goal("Y", custom_fields={"color": "blue", "nested": {"a": 1}})
    plan = store.create_goal(goal, store.new_plan("2025"))
    assert find_goal("Y", plan).custom_fields == {"color": "blue", "nested": {"a": 1}}


def test_plan_index_entry_uses_first_root_title():
    entry = store.plan_index_entry(quarter_tree())
    assert entry.year_goal_title == "Y"
    assert entry.storage_key == "goal-plan-plan-1"
    assert entry.to_wire()["yearGoalTitle"] == "Y"


def test_child_level_stops_at_day():
    assert store.child_level("year") == "quarter"
    assert store.child_level("day") == "day"


def test_update_goal_keeps_level():
    plan = quarter_tree()
    edited = find_goal("Y", plan).model_copy(update={"level": "day"})
    plan = store.update_goal(edited, plan)

    assert find_goal("Y", plan).level == "year"
    assert find_goal("Q", plan).level == "quarter"
