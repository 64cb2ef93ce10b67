"""Task file loading with config discovery.

A task file is YAML with a ``tasks`` list and, optionally, an inline
``config`` section using the same layout as chronoplan.yaml:

    tasks:
      - id: design
        description: Write the design doc
        deadline: 2025-03-06 17:00
        priority: 2
        granularity: 1h
        workload: 3h
      - id: build
        deadline: 2025-03-10 17:00
        granularity: 30m
        workload: 6h
        velocity: 0.8
        dependencies: [design]
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from . import context
from .config import DEFAULT_CONFIG_NAME, PlanConfig, load_plan_config, parse_plan_config
from .exceptions import ParseError
from .scheduler.core import Task
from .scheduler.validator import TaskValidator


@dataclass
class LoadedPlan:
    """Tasks and configuration ready for scheduling."""

    tasks: list[Task]
    config: PlanConfig
    source: Path


def _discover_config(
    tasks_path: Path,
    config_path: Path | None = None,
) -> PlanConfig | None:
    """Discover the plan config from various locations.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. Task file directory / chronoplan.yaml
    4. Current directory / chronoplan.yaml
    """
    if config_path is not None:
        return load_plan_config(config_path)

    ctx_config = context.get_config_path()
    if ctx_config is not None:
        return load_plan_config(ctx_config)

    dir_config = tasks_path.parent / DEFAULT_CONFIG_NAME
    if dir_config.exists():
        return load_plan_config(dir_config)

    cwd_config = Path(DEFAULT_CONFIG_NAME)
    if cwd_config.exists():
        return load_plan_config(cwd_config)

    return None


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping from disk.

    Raises:
        ParseError: If the file is missing, malformed or not a mapping
    """
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("YAML must contain a dictionary at the root level")
    return data


def load_plan(
    path: Path | str,
    config_path: Path | None = None,
    *,
    config: PlanConfig | None = None,
) -> LoadedPlan:
    """Load and validate a task file.

    An inline ``config`` section in the task file wins over discovered
    configuration; an explicit ``config`` argument wins over both.

    Args:
        path: Path to the task YAML file
        config_path: Optional explicit path to a config file
        config: Optional explicit configuration (overrides discovery)

    Returns:
        LoadedPlan with validated tasks

    Raises:
        ParseError: If the task file or config is malformed
        InvalidTaskError: If a task record is invalid
    """
    path = Path(path)
    data = read_yaml(path)

    if config is None and "config" in data:
        try:
            config = parse_plan_config(data["config"] or {})
        except ValueError as e:
            raise ParseError(f"Invalid inline config in {path}: {e}") from e

    if config is None:
        try:
            config = _discover_config(path, config_path)
        except (FileNotFoundError, ValueError) as e:
            raise ParseError(str(e)) from e

    if config is None:
        raise ParseError(
            f"No configuration found for {path}: add a 'config' section or {DEFAULT_CONFIG_NAME}"
        )

    records = data.get("tasks")
    if not isinstance(records, list):
        raise ParseError("Task file must contain a 'tasks' list")
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ParseError(f"Task entry #{index + 1} must be a mapping")

    validator = TaskValidator(config.horizon_interval)
    tasks = [validator.parse_record(record) for record in records]

    return LoadedPlan(tasks=tasks, config=config, source=path)
