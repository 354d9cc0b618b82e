from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import WireModel

TaskType = Literal["duration", "count", "completion", "homework"]
TaskPriority = Literal["high", "medium", "low"]
TargetUnit = Literal["minutes", "reps", "times"]


class TaskTarget(WireModel):
    value: float
    unit: TargetUnit = "minutes"


class TaskSession(WireModel):
    date: int
    duration: int  # seconds
    estimated_duration: Optional[int] = None
    went_overtime: Optional[bool] = None
    notes: Optional[str] = None


class CountLog(WireModel):
    date: int
    count: int
    notes: Optional[str] = None


class CompletionLog(WireModel):
    date: int
    completed: bool
    status: Optional[Literal["done", "skipped", "partial"]] = None
    completion_percentage: Optional[int] = None
    notes: Optional[str] = None


class Task(WireModel):
    id: str
    name: str = ""
    type: TaskType
    target: Optional[TaskTarget] = None
    notes: str = ""

    priority: TaskPriority = "medium"
    importance: int = 5
    estimated_time: Optional[int] = None
    order: int = 0

    scheduled_for: Optional[str] = None
    is_recurring: bool = False

    sessions: Optional[List[TaskSession]] = None
    count_logs: Optional[List[CountLog]] = None
    completions: Optional[List[CompletionLog]] = None

    # Subtasks are referenced by id, never embedded.
    parent_id: Optional[str] = None
    subtask_ids: List[str] = Field(default_factory=list)

    created_at: int = 0

    linked_goal_id: Optional[str] = None
    goal_context: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None


class ArchivedTask(WireModel):
    task_id: str
    task_name: str = ""
    task_type: TaskType = "completion"
    target: Optional[TaskTarget] = None
    actual: Optional[TaskTarget] = None
    sessions: List[Dict[str, Any]] = Field(default_factory=list)
    notes: str = ""
    completed: bool = False
    icon: Optional[str] = None
    linked_goal_id: Optional[str] = None


class DaySessionSummary(WireModel):
    start_time: int
    end_time: int
    total_duration: int
    active_duration: int
    inactive_duration: int


class DayArchive(WireModel):
    date: str
    date_timestamp: int = 0
    day_session: Optional[DaySessionSummary] = None
    tasks: List[ArchivedTask] = Field(default_factory=list)
