"""State set by the ``chronoplan`` callback and read by its commands.

Only the ``--config`` path lives here. ``loader.load_plan`` consults it
after an explicit path argument and before looking next to the task file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class CliState:
    config_path: Path | None = None


_state = CliState()


def get_config_path() -> Path | None:
    """The ``--config`` path of the current invocation, if one was given."""
    return _state.config_path


def set_config_path(path: Path | None) -> None:
    _state.config_path = path


def reset() -> None:
    """Forget everything set by a previous invocation."""
    global _state  # noqa: PLW0603
    _state = CliState()
