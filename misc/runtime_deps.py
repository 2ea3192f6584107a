from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RuntimeDeps:
    storage: Any
    tracker: Any
    command_prefix: str = "!"


@dataclass(frozen=True)
class RuntimeBootDeps:
    scheduler: Any
    prompt_dispatcher: Any
    meal_question_config: Any
    sweep_cron: str
    sweep_timezone: str | None
    sweep_func: Any
