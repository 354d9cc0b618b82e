import logging
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from ..config import Settings, load_settings
from ..errors import GoalValidationError, PlanNotFoundError
from ..goals import store
from ..goals.hierarchy import build_goal_tree, find_goal, get_goal_path_string
from ..goals.insights import generate_goal_insights
from ..goals.progress import calculate_actual_progress, calculate_expected_progress, get_progress_status
from ..goals.recommendations import (
    generate_task_suggestions,
    get_goals_needing_attention,
    get_recommended_tasks_from_goals,
)
from ..goals.session import GoalSession
from ..schemas.goal import Goal, GoalProgressReport
from ..schemas.task import DayArchive, Task
from ..storage.plans import PlanRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


@lru_cache()
def get_repository() -> PlanRepository:
    return PlanRepository(get_settings().storage_dir)


def build_session(repository: PlanRepository) -> GoalSession:
    """Load stored plans and keep the repository in sync with every mutation."""
    session = GoalSession(repository.list_plans())
    session.subscribe(repository.persist)
    return session


@lru_cache()
def _default_session() -> GoalSession:
    return build_session(get_repository())


def get_session() -> GoalSession:
    return _default_session()


def _active_plan(session: GoalSession):
    plan = session.active_plan
    if not plan:
        raise HTTPException(status_code=404, detail="No active goal plan")
    return plan


def _text(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{key} must be a string")
    return value


def _active_goal(session: GoalSession, goal_id: str) -> Goal:
    goal = find_goal(goal_id, _active_plan(session))
    if not goal:
        raise HTTPException(status_code=404, detail=f"Goal {goal_id} not found")
    return goal


# -- plans ---------------------------------------------------------------


@router.get("/plans")
async def list_plans(repository: PlanRepository = Depends(get_repository)) -> Any:
    return [item.to_wire() for item in repository.get_index()]


@router.post("/plans")
async def create_plan(
    body: Dict[str, Any],
    session: GoalSession = Depends(get_session),
    repository: PlanRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> Any:
    title = _text(body, "title").strip()
    if not title:
        raise HTTPException(status_code=400, detail="title required")
    try:
        goals = [Goal(**item) for item in body.get("goals") or []]
    except (TypeError, ValidationError) as error:
        raise HTTPException(status_code=400, detail=str(error)) from error
    plan = session.create_plan(title, goals)
    for plan_id in repository.cleanup_old_plans(settings.cleanup_keep_count):
        session.delete_plan(plan_id)
    return plan.to_wire()


@router.post("/plans/{plan_id}/activate")
async def activate_plan(plan_id: str, session: GoalSession = Depends(get_session)) -> Any:
    try:
        return session.set_active_plan(plan_id).to_wire()
    except PlanNotFoundError as error:
        raise HTTPException(status_code=404, detail=str(error)) from error


@router.delete("/plans/{plan_id}")
async def delete_plan(
    plan_id: str,
    session: GoalSession = Depends(get_session),
    repository: PlanRepository = Depends(get_repository),
) -> Any:
    if not session.delete_plan(plan_id):
        raise HTTPException(status_code=404, detail=f"Goal plan {plan_id} not found")
    repository.delete_plan(plan_id)
    repository.remove_from_index(plan_id)
    return {"deleted": plan_id}


# -- active plan ---------------------------------------------------------


@router.get("/active")
async def active_plan(session: GoalSession = Depends(get_session)) -> Any:
    return _active_plan(session).to_wire()


@router.get("/active/tree")
async def active_tree(session: GoalSession = Depends(get_session)) -> Any:
    return [node.to_wire() for node in build_goal_tree(_active_plan(session))]


@router.put("/active/day")
async def set_day_state(body: Dict[str, Any], session: GoalSession = Depends(get_session)) -> Any:
    try:
        archive = [DayArchive(**day) for day in body.get("archive") or []]
        current_tasks = [Task(**task) for task in body.get("currentTasks") or []]
    except ValidationError as error:
        raise HTTPException(status_code=400, detail=str(error)) from error
    plan = session.set_day_state(archive, current_tasks)
    return plan.to_wire() if plan else None


@router.post("/active/goals")
async def create_goal(body: Dict[str, Any], session: GoalSession = Depends(get_session)) -> Any:
    try:
        goal = store.new_goal(
            title=_text(body, "title"),
            level=body.get("level") or "year",
            start_date=body.get("startDate") or "",
            end_date=body.get("endDate") or "",
            description=_text(body, "description"),
            parent_id=body.get("parentId"),
            linked_task_ids=body.get("linkedTaskIds") or [],
        )
        return session.create_goal(goal).to_wire()
    except (GoalValidationError, ValidationError) as error:
        logger.info("Rejected new goal: %s", error)
        raise HTTPException(status_code=400, detail=str(error)) from error


@router.put("/active/goals/{goal_id}")
async def update_goal(goal_id: str, body: Dict[str, Any], session: GoalSession = Depends(get_session)) -> Any:
    existing = _active_goal(session, goal_id)
    try:
        goal = Goal(**{**existing.to_wire(), **body, "id": goal_id})
        return session.update_goal(goal).to_wire()
    except (GoalValidationError, ValidationError) as error:
        raise HTTPException(status_code=400, detail=str(error)) from error


@router.delete("/active/goals/{goal_id}")
async def delete_goal(goal_id: str, session: GoalSession = Depends(get_session)) -> Any:
    _active_goal(session, goal_id)
    return session.delete_goal(goal_id).to_wire()


@router.post("/active/goals/{goal_id}/refresh")
async def refresh_goal(goal_id: str, session: GoalSession = Depends(get_session)) -> Any:
    _active_goal(session, goal_id)
    return session.refresh_goal(goal_id).to_wire()


@router.get("/active/goals/{goal_id}/progress")
async def goal_progress(
    goal_id: str, today: Optional[date] = None, session: GoalSession = Depends(get_session)
) -> Any:
    goal = _active_goal(session, goal_id)
    plan = _active_plan(session)
    actual = calculate_actual_progress(goal_id, plan, session.archive, session.current_tasks, today)
    expected = calculate_expected_progress(goal, today)
    report = GoalProgressReport(
        goal_id=goal_id,
        actual=actual,
        expected=expected,
        status=get_progress_status(actual, expected),
        path=get_goal_path_string(goal_id, plan),
    )
    return report.to_wire()


@router.get("/active/goals/{goal_id}/suggestions")
async def goal_suggestions(goal_id: str, session: GoalSession = Depends(get_session)) -> Any:
    return generate_task_suggestions(_active_goal(session, goal_id))


@router.get("/active/goals/{goal_id}/insights")
async def goal_insights(
    goal_id: str, now: Optional[datetime] = None, session: GoalSession = Depends(get_session)
) -> Any:
    goal = _active_goal(session, goal_id)
    return generate_goal_insights(goal, _active_plan(session), session.archive, now)


@router.get("/active/attention")
async def goals_needing_attention(
    now: Optional[datetime] = None, session: GoalSession = Depends(get_session)
) -> Any:
    plan = _active_plan(session)
    goals = get_goals_needing_attention(plan, session.archive, session.current_tasks, now)
    return [goal.to_wire() for goal in goals]


@router.get("/active/recommendations")
async def recommendations(
    dismissed: List[str] = Query(default=[]),
    now: Optional[datetime] = None,
    session: GoalSession = Depends(get_session),
) -> Any:
    _active_plan(session)
    return [rec.to_wire() for rec in session.recommendations(dismissed, now)]


@router.get("/active/recommended-tasks")
async def recommended_tasks(
    dismissed: List[str] = Query(default=[]),
    now: Optional[datetime] = None,
    session: GoalSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> Any:
    plan = _active_plan(session)
    tasks = get_recommended_tasks_from_goals(
        plan,
        session.archive,
        session.current_tasks,
        dismissed_goal_ids=dismissed,
        limit=settings.recommended_task_limit,
        now=now,
    )
    return [task.to_wire() for task in tasks]
