"""File-backed persistence for goal plans and the plan index.

Each plan lives in its own JSON document keyed by plan id; a separate index
document lists every plan for cheap listing without loading the plans.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from ..errors import PlanLoadError
from ..goals.store import PLAN_STORAGE_PREFIX, plan_index_entry
from ..schemas.goal import GoalPlan, GoalPlanIndex
from .validator import validate_plan_payload

logger = logging.getLogger(__name__)

INDEX_KEY = "goal-plan-index"


class PlanRepository:
    def __init__(self, root_dir: Union[str, Path]) -> None:
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def _plan_path(self, plan_id: str) -> Path:
        return self._path(f"{PLAN_STORAGE_PREFIX}{plan_id}")

    def _write(self, path: Path, payload: Any) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)

    # -- plans -----------------------------------------------------------

    def save_plan(self, plan: GoalPlan) -> None:
        self._write(self._plan_path(plan.id), plan.to_wire())

    def load_plan(self, plan_id: str) -> Optional[GoalPlan]:
        path = self._plan_path(plan_id)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise PlanLoadError(f"Goal plan {plan_id} is not valid JSON: {error}") from error
        return parse_plan(raw)

    def delete_plan(self, plan_id: str) -> None:
        try:
            self._plan_path(plan_id).unlink()
        except FileNotFoundError:
            logger.debug("Goal plan %s already absent", plan_id)

    def list_plans(self) -> List[GoalPlan]:
        plans: List[GoalPlan] = []
        for item in self.get_index():
            try:
                plan = self.load_plan(item.id)
            except PlanLoadError:
                logger.exception("Skipping unreadable goal plan %s", item.id)
                continue
            if plan:
                plans.append(plan)
        return plans

    def persist(self, plan: GoalPlan) -> None:
        """Save a plan and upsert its index row; used as a session listener."""
        self.save_plan(plan)
        self.add_to_index(plan)

    # -- index -----------------------------------------------------------

    def get_index(self) -> List[GoalPlanIndex]:
        path = self._path(INDEX_KEY)
        if not path.exists():
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return [GoalPlanIndex(**item) for item in raw]
        except (json.JSONDecodeError, TypeError, ValidationError):
            logger.exception("Failed to load goal plan index")
            return []

    def update_index(self, index: List[GoalPlanIndex]) -> None:
        self._write(self._path(INDEX_KEY), [item.to_wire() for item in index])

    def add_to_index(self, plan: GoalPlan) -> None:
        entry = plan_index_entry(plan)
        index = self.get_index()
        for position, item in enumerate(index):
            if item.id == plan.id:
                index[position] = entry
                break
        else:
            index.append(entry)
        self.update_index(index)

    def remove_from_index(self, plan_id: str) -> None:
        self.update_index([item for item in self.get_index() if item.id != plan_id])

    def storage_size(self) -> int:
        """Bytes used by plan documents and the index, counted as key + value length."""
        total = 0
        for path in self.root.glob(f"{PLAN_STORAGE_PREFIX}*.json"):
            total += len(path.stem) + len(path.read_text(encoding="utf-8"))
        return total

    def cleanup_old_plans(self, keep_count: int = 2) -> List[str]:
        """Keep the active plan plus the newest ``keep_count`` inactive plans."""
        ordered = sorted(self.get_index(), key=lambda item: item.created_at, reverse=True)
        keep = {item.id for item in ordered if item.is_active}
        keep.update(item.id for item in [item for item in ordered if not item.is_active][:keep_count])

        removed = [item.id for item in ordered if item.id not in keep]
        for plan_id in removed:
            self.delete_plan(plan_id)
        self.update_index([item for item in self.get_index() if item.id in keep])
        logger.info("Cleaned up %d old goal plans", len(removed))
        return removed


def parse_plan(raw: Any) -> GoalPlan:
    """Validate a persisted plan document; any problem rejects the whole plan."""
    if isinstance(raw, dict) and not raw.get("yearGoalIds") and raw.get("yearGoalId"):
        raw = {**raw, "yearGoalIds": [raw["yearGoalId"]]}
    verdict = validate_plan_payload(raw)
    if not verdict["valid"]:
        raise PlanLoadError("Invalid goal plan: " + "; ".join(verdict["errors"]))
    try:
        return GoalPlan(**raw)
    except ValidationError as error:
        raise PlanLoadError(f"Invalid goal plan: {error}") from error