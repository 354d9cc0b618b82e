import json
from pathlib import Path
from typing import Any, Dict

import jsonschema


def _load_schema(name: str) -> Dict[str, Any]:
    schema_path = Path(__file__).with_name(f"{name}.schema.json")
    with schema_path.open("r", encoding="utf-8") as f:
        return json.load(f)["schema"]


_plan_validator = jsonschema.Draft7Validator(_load_schema("goal_plan"))


def validate_plan_payload(data: Any) -> Dict[str, Any]:
    errors = sorted(_plan_validator.iter_errors(data), key=lambda e: [str(part) for part in e.path])
    if not errors:
        return {"valid": True}
    return {"valid": False, "errors": [f"{'/'.join(map(str, err.path))} {err.message}".strip() for err in errors]}
