import pathlib
import sys
from datetime import date

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from goalplan.goals import hierarchy  # noqa: E402
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


def sample_plan():
    goals = [
        make_goal("Y", title="2025", child_ids=["Q1", "Q2", "missing"]),
        make_goal("Q1", "quarter", "2025-01-01", "2025-03-31", "Y", ["Jan"], title="Q1"),
        make_goal("Q2", "quarter", "2025-04-01", "2025-06-30", "Y", title="Q2"),
        make_goal("Jan", "month", "2025-01-01", "2025-01-31", "Q1", ["W1"], title="January"),
        make_goal("W1", "week", "2025-01-06", "2025-01-12", "Jan", title="Week 1", status="completed"),
    ]
    return GoalPlan(id="p", title="Plan", year_goal_ids=["Y"], goals=goals)


def test_children_follow_child_ids_order_and_skip_dangling():
    plan = sample_plan()
    assert [goal.id for goal in hierarchy.get_goal_children("Y", plan)] == ["Q1", "Q2"]
    assert hierarchy.get_goal_children("ghost", plan) == []


def test_ancestors_are_nearest_first():
    plan = sample_plan()
    assert [goal.id for goal in hierarchy.get_goal_ancestors("W1", plan)] == ["Jan", "Q1", "Y"]


def test_ancestors_stop_at_broken_chain():
    plan = GoalPlan(id="p", title="Plan", goals=[make_goal("orphan", "week", parent_id="gone")])
    assert hierarchy.get_goal_ancestors("orphan", plan) == []


def test_descendants_preorder_with_dangling_ids():
    plan = sample_plan()
    assert hierarchy.get_all_descendant_ids("Y", plan) == ["Q1", "Jan", "W1", "Q2", "missing"]
    assert [goal.id for goal in hierarchy.get_goal_descendants("Y", plan)] == ["Q1", "Jan", "W1", "Q2"]
    assert hierarchy.get_all_descendant_ids("ghost", plan) == []


def test_descendants_terminate_on_cycle():
    goals = [
        make_goal("a", child_ids=["b"]),
        make_goal("b", "quarter", parent_id="a", child_ids=["a"]),
    ]
    plan = GoalPlan(id="p", title="Plan", goals=goals)
    assert hierarchy.get_all_descendant_ids("a", plan) == ["b"]
    assert [goal.id for goal in hierarchy.get_goal_ancestors("b", plan)] == ["a"]


def test_path_string_joins_titles_from_root():
    plan = sample_plan()
    assert hierarchy.get_goal_path_string("W1", plan) == "2025 > Q1 > January > Week 1"
    assert hierarchy.get_goal_path_string("ghost", plan) == ""


def test_level_and_date_window_queries():
    plan = sample_plan()
    today = date(2025, 1, 8)
    assert [goal.id for goal in hierarchy.get_goals_by_level("quarter", plan)] == ["Q1", "Q2"]
    assert [goal.id for goal in hierarchy.get_active_goals(plan, today)] == ["Y", "Q1", "Jan", "W1"]
    assert [goal.id for goal in hierarchy.get_current_week_goals(plan, today)] == ["W1"]
    assert [goal.id for goal in hierarchy.get_current_month_goals(plan, today)] == ["Jan"]
    assert [goal.id for goal in hierarchy.get_current_quarter_goals(plan, today)] == ["Q1"]


def test_overdue_skips_completed_goals():
    plan = sample_plan()
    overdue = hierarchy.get_overdue_goals(plan, date(2025, 2, 1))
    assert [goal.id for goal in overdue] == ["Jan"]


def test_build_goal_tree_nests_children_with_depth():
    tree = hierarchy.build_goal_tree(sample_plan())
    assert len(tree) == 1
    root = tree[0]
    assert root.depth == 0
    assert [child.id for child in root.children] == ["Q1", "Q2"]
    week = root.children[0].children[0].children[0]
    assert week.id == "W1" and week.depth == 3
    assert root.to_wire()["children"][0]["childIds"] == ["Jan"]
