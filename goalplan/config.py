import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel

from .errors import ConfigError


class Settings(BaseModel):
    storage_dir: str = "./data/goal-plans"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cleanup_keep_count: int = 2
    recommended_task_limit: int = 3


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Build settings from an optional YAML file plus environment overrides."""
    values: Dict[str, Any] = {}
    config_path = path or os.getenv("GOALPLAN_CONFIG")
    if config_path:
        content = Path(config_path).read_text(encoding="utf-8")
        parsed = yaml.safe_load(content)
        if parsed is None:
            parsed = {}
        if not isinstance(parsed, dict):
            raise ConfigError(f"Config file {config_path} did not produce a mapping")
        values.update(parsed)

    storage_dir = os.getenv("GOALPLAN_STORAGE_DIR")
    if storage_dir:
        values["storage_dir"] = storage_dir
    log_level = os.getenv("GOALPLAN_LOG_LEVEL")
    if log_level:
        values["log_level"] = log_level
    return Settings(**values)
