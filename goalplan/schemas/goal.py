from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import WireModel

GoalLevel = Literal["year", "quarter", "month", "week", "day"]
GoalStatus = Literal["not-started", "in-progress", "completed", "abandoned"]
Urgency = Literal["critical", "high", "medium"]
ProgressState = Literal["ahead", "on-track", "behind"]

# Coarsest to finest.
GOAL_LEVELS: List[str] = ["year", "quarter", "month", "week", "day"]


class Goal(WireModel):
    id: str
    title: str
    description: str = ""
    level: GoalLevel

    parent_id: Optional[str] = None
    child_ids: List[str] = Field(default_factory=list)
    linked_task_ids: List[str] = Field(default_factory=list)
    # Extra edges for visual layouts only; never used for hierarchy or progress.
    custom_connection_ids: Optional[List[str]] = None

    start_date: str
    end_date: str

    ai_generated: bool = False
    ai_context: Optional[str] = None

    status: GoalStatus = "not-started"
    completion_percentage: int = Field(default=0, ge=0, le=100)

    order: int = 0
    custom_fields: Optional[Dict[str, Any]] = None

    created_at: int = 0
    updated_at: int = 0


class InterviewResponse(WireModel):
    question_id: str
    question: str
    answer: str
    timestamp: int


class GoalPlan(WireModel):
    id: str
    title: str
    # Legacy single-root pointer, mirrors year_goal_ids[0].
    year_goal_id: Optional[str] = None
    year_goal_ids: List[str] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)

    interview_date: Optional[int] = None
    interview_responses: List[InterviewResponse] = Field(default_factory=list)

    is_active: bool = False
    ai_model: str = "manual"

    created_at: int = 0
    updated_at: int = 0


class GoalPlanIndex(WireModel):
    id: str
    title: str
    year_goal_title: str
    is_active: bool
    created_at: int
    storage_key: str


class GoalNode(Goal):
    children: List["GoalNode"] = Field(default_factory=list)
    depth: int = 0


class ProgressStatus(WireModel):
    status: ProgressState
    message: str


class GoalDateValidation(WireModel):
    valid: bool
    error: Optional[str] = None


class GoalRecommendation(WireModel):
    goal: Goal
    urgency: Urgency
    progress_gap: int
    days_remaining: int
    suggested_actions: List[str]
    ai_generated_task: Optional[str] = None


class GoalProgressReport(WireModel):
    goal_id: str
    actual: int
    expected: int
    status: ProgressStatus
    path: str


GoalNode.model_rebuild()
