from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from config.defaults import NUTRITION_WINDOW_DAYS
from meals.completion import CompletionClient
from meals.models import MealRecord
from meals.nutrition_prompt import NutritionPrompt
from meals.storage import MealStorage


class NutritionStatus(str, Enum):
    OK = "ok"
    NO_HISTORY = "no_history"
    NOT_CONFIGURED = "not_configured"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True)
class NutritionSummary:
    status: NutritionStatus
    text: str = ""
    meal_count: int = 0


def _tzinfo(timezone_name: str | None):
    name = (timezone_name or "").strip()
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def format_history_lines(records: list[MealRecord], timezone_name: str | None = None) -> list[str]:
    tz = _tzinfo(timezone_name)
    return [f"{r.created_at.astimezone(tz):%Y-%m-%d %H:%M:%S}: {r.text}" for r in records]


def format_nutrition_history(records: list[MealRecord], timezone_name: str | None = None) -> str:
    tz = _tzinfo(timezone_name)
    lines = []
    for r in records:
        local = r.created_at.astimezone(tz)
        lines.append(f"{local.month}/{local.day}: {r.text}")
    return "\n".join(lines)


class NutritionAdvisor:
    def __init__(
        self,
        *,
        storage: MealStorage,
        completion: CompletionClient | None,
        prompt: NutritionPrompt,
        timezone_name: str | None = None,
        window_days: int = NUTRITION_WINDOW_DAYS,
    ) -> None:
        self.storage = storage
        self.completion = completion
        self.prompt = prompt
        self.timezone_name = timezone_name
        self.window_days = int(window_days)

    async def summarize(self, user_id: str, *, now: datetime | None = None) -> NutritionSummary:
        """Ask the model which nutrients the user's recent meals are missing.

        Raises StorageNotInitializedError when storage is unavailable and
        CompletionError when the completion call fails. No completion call is
        made when the window holds no meals.
        """
        records = await self.storage.get_recent_meals_window(str(user_id), self.window_days, now=now)
        if not records:
            return NutritionSummary(status=NutritionStatus.NO_HISTORY)
        if self.completion is None:
            return NutritionSummary(status=NutritionStatus.NOT_CONFIGURED, meal_count=len(records))

        history_text = format_nutrition_history(records, self.timezone_name)
        answer = await self.completion.complete(
            system_prompt=self.prompt.system_prompt,
            user_prompt=self.prompt.render_user_prompt(history_text),
            max_tokens=self.prompt.max_tokens,
            temperature=self.prompt.temperature,
        )
        if not answer:
            return NutritionSummary(status=NutritionStatus.EMPTY, meal_count=len(records))
        print(f"[Nutrition] summary generated user_id={user_id} meals={len(records)}")
        return NutritionSummary(status=NutritionStatus.OK, text=answer, meal_count=len(records))
