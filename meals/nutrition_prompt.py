from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from config.defaults import DEFAULT_NUTRITION_MAX_TOKENS
from config.defaults import DEFAULT_NUTRITION_SYSTEM_PROMPT
from config.defaults import DEFAULT_NUTRITION_TEMPERATURE
from config.defaults import DEFAULT_NUTRITION_USER_PROMPT
from config.defaults import DEFAULT_OPENAI_MODEL


@dataclass(frozen=True, slots=True)
class NutritionPrompt:
    model: str = DEFAULT_OPENAI_MODEL
    system_prompt: str = DEFAULT_NUTRITION_SYSTEM_PROMPT
    user_prompt: str = DEFAULT_NUTRITION_USER_PROMPT
    max_tokens: int = DEFAULT_NUTRITION_MAX_TOKENS
    temperature: float = DEFAULT_NUTRITION_TEMPERATURE

    def render_user_prompt(self, history_text: str) -> str:
        if "{history}" in self.user_prompt:
            return self.user_prompt.replace("{history}", history_text)
        return f"{self.user_prompt}\n\n{history_text}"


def default_nutrition_prompt_path() -> str:
    return str(Path(__file__).resolve().parents[1] / "config" / "nutrition_prompt.yml")


def _text(value: Any, fallback: str) -> str:
    clean = str(value or "").strip()
    return clean or fallback


def load_nutrition_prompt(path: str | Path | None) -> tuple[NutritionPrompt, str | None]:
    """
    Returns (prompt, warning_message). warning_message is None on clean load.
    """
    defaults = NutritionPrompt()
    if not path:
        return (defaults, "Nutrition prompt path missing; using built-in defaults.")

    p = Path(path)
    if not p.exists():
        return (defaults, f"Nutrition prompt file not found at {p}; using built-in defaults.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (defaults, f"Failed to read nutrition prompt from {p}: {exc}; using built-in defaults.")

    if not isinstance(payload, dict):
        return (defaults, f"Invalid nutrition prompt format in {p}; using built-in defaults.")

    try:
        max_tokens = int(payload.get("max_tokens", defaults.max_tokens))
        temperature = float(payload.get("temperature", defaults.temperature))
    except (TypeError, ValueError):
        return (defaults, f"Invalid max_tokens/temperature in {p}; using built-in defaults.")

    prompt = NutritionPrompt(
        model=_text(payload.get("model"), defaults.model),
        system_prompt=_text(payload.get("system_prompt"), defaults.system_prompt),
        user_prompt=_text(payload.get("user_prompt"), defaults.user_prompt),
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return (prompt, None)
