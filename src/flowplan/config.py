"""Configuration for the scheduling engine.

A single ``flowplan_config.yaml`` file holds the engine settings. Every key
is optional; an absent section falls back to the defaults below.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .models import DEFAULT_DAILY_WORK_HOURS, DEFAULT_WORK_DAYS

CONFIG_FILENAME = "flowplan_config.yaml"


class EngineConfig(BaseModel):
    """Settings that change how schedules are computed."""

    # Longest dependency chain walked before giving up as a probable cycle
    max_dependency_depth: int = Field(default=256, ge=1)
    # Used for team members that do not state their own capacity
    default_daily_work_hours: float = Field(default=DEFAULT_DAILY_WORK_HOURS, gt=0)
    default_work_days: list[int] = Field(default_factory=lambda: list(DEFAULT_WORK_DAYS))
    # Imported rows without an explicit is_backlog land in the backlog
    import_to_backlog: bool = True

    @field_validator("default_work_days")
    @classmethod
    def _check_work_days(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("default_work_days must contain at least one weekday")
        invalid = [d for d in value if d not in range(7)]
        if invalid:
            raise ValueError(f"default_work_days holds invalid weekday numbers: {invalid}")
        return sorted(set(value))


class UnifiedConfig(BaseModel):
    """Root of the configuration file."""

    engine: EngineConfig = Field(default_factory=EngineConfig)


def load_unified_config(config_path: Path | str) -> UnifiedConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to flowplan_config.yaml

    Returns:
        Parsed configuration

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the file is empty or does not hold a mapping
        pydantic.ValidationError: If a setting has an invalid value
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open() as f:
        data: dict[str, Any] | None = yaml.safe_load(f)

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping")

    return UnifiedConfig.model_validate(data)


class _ConfigOverride:
    """Config path chosen on the command line, shared by every loader."""

    path: Path | None = None


def get_config_path() -> Path | None:
    return _ConfigOverride.path


def set_config_path(path: Path | None) -> None:
    _ConfigOverride.path = path


def discover_config(workspace_path: Path | str, config_path: Path | None = None) -> UnifiedConfig:
    """Find and load the configuration that applies to a workspace file.

    Search order:
    1. Explicit config_path argument
    2. Path set with set_config_path() (the CLI's --config)
    3. flowplan_config.yaml next to the workspace file
    4. flowplan_config.yaml in the current directory

    Returns the default configuration when none of them exists.
    """
    candidates = [
        config_path,
        get_config_path(),
        Path(workspace_path).parent / CONFIG_FILENAME,
        Path(CONFIG_FILENAME),
    ]
    for candidate in candidates:
        if candidate is not None and candidate.exists():
            return load_unified_config(candidate)
    return UnifiedConfig()
