"""Plan configuration: horizon, blackouts and scheduler settings.

A single YAML file (chronoplan.yaml by default) holds everything except the
tasks themselves:

    horizon:
      start: 2025-03-05 00:00
      end: 2025-03-12 00:00
    blackouts:
      - {start: 2025-03-07 12:00, end: 2025-03-07 14:00, label: Dentist}
    recurring_blackouts:
      - {rule: "FREQ=DAILY", hours: "18:00-09:00", label: Off hours}
    scheduler:
      heuristics: [{type: dependency}, {type: priority}, {type: deadline}]
      slice_limit: 2h
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .blackouts import BlackoutPeriod, RecurringBlackout, expand_blackouts
from .exceptions import ParseError
from .scheduler import SchedulingConfig
from .scheduler.core import Interval
from .timeparse import parse_datetime

DEFAULT_CONFIG_NAME = "chronoplan.yaml"


class HorizonConfig(BaseModel):
    """Bounded range within which scheduling is attempted."""

    start: datetime
    end: datetime

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_point(cls, value: Any) -> Any:
        if isinstance(value, (str, date)):
            return parse_datetime(value)
        return value

    @model_validator(mode="after")
    def validate_end_after_start(self) -> HorizonConfig:
        """Ensure the horizon is non-empty."""
        if self.end <= self.start:
            raise ValueError("horizon end must be after start")
        return self

    def to_interval(self) -> Interval:
        return Interval(self.start, self.end)


class PlanConfig(BaseModel):
    """Complete plan configuration."""

    horizon: HorizonConfig
    blackouts: list[BlackoutPeriod] = Field(default_factory=list[BlackoutPeriod])
    recurring_blackouts: list[RecurringBlackout] = Field(
        default_factory=list[RecurringBlackout]
    )
    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)

    @property
    def horizon_interval(self) -> Interval:
        return self.horizon.to_interval()

    def one_off_layer(self) -> tuple[Interval, ...]:
        """Merged one-off blackouts."""
        return expand_blackouts(self.horizon_interval, periods=self.blackouts)

    def recurring_layer(self) -> tuple[Interval, ...]:
        """Merged recurring blackouts expanded across the horizon."""
        return expand_blackouts(self.horizon_interval, recurring=self.recurring_blackouts)

    def all_blackouts(self) -> tuple[Interval, ...]:
        return expand_blackouts(
            self.horizon_interval,
            periods=self.blackouts,
            recurring=self.recurring_blackouts,
        )


def parse_plan_config(data: dict[str, Any]) -> PlanConfig:
    """Validate already-loaded YAML data.

    Raises:
        ValueError: If the configuration is invalid
    """
    if "horizon" not in data:
        raise ValueError("Config must contain 'horizon' section")
    return PlanConfig.model_validate(data)


def load_plan_config(config_path: Path | str) -> PlanConfig:
    """Load plan configuration from a YAML file.

    Args:
        config_path: Path to chronoplan.yaml

    Returns:
        Validated PlanConfig

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ParseError: If the file is not valid YAML
        ValueError: If the configuration is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse config YAML: {e}") from e

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Config must contain a mapping at the root level")

    return parse_plan_config(data)
