import secrets

from .dates import now_ms

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
SUFFIX_SIZE = 6


def nanoid(size: int = SUFFIX_SIZE) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(size))


def new_goal_id(level: str) -> str:
    # Millisecond stamps alone collide when goals are generated in bulk.
    return f"goal-{level}-{now_ms()}-{nanoid()}"


def new_plan_id() -> str:
    return f"plan-{now_ms()}-{nanoid()}"


def recommended_task_id(goal_id: str) -> str:
    return f"goal-rec-{goal_id}-{now_ms()}"
