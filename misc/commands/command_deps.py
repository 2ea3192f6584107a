from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from config.defaults import DEFAULT_HISTORY_LIMIT
from config.defaults import DEFAULT_NUDGE_COMMAND


@dataclass(frozen=True)
class CommandDeps:
    # Core/shared
    storage: Any = None
    nutrition_advisor: Any = None
    timezone_name: str | None = None

    # History
    history_limit: int = DEFAULT_HISTORY_LIMIT

    # Nudge
    nudge_command: str = DEFAULT_NUDGE_COMMAND
    nudge_text: str | None = None
