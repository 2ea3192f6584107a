from __future__ import annotations

from datetime import datetime
from enum import Enum
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from config.defaults import MORNING_START_HOUR
from config.defaults import NIGHT_START_HOUR
from config.defaults import NOON_START_HOUR
from config.settings import MealQuestionConfig


class TimeWindow(str, Enum):
    MORNING = "morning"
    NOON = "noon"
    NIGHT = "night"


def window_for_hour(hour: int) -> TimeWindow:
    h = int(hour) % 24
    if MORNING_START_HOUR <= h < NOON_START_HOUR:
        return TimeWindow.MORNING
    if NOON_START_HOUR <= h < NIGHT_START_HOUR:
        return TimeWindow.NOON
    return TimeWindow.NIGHT


def hour_in_timezone(now: datetime, timezone_name: str | None) -> int:
    """Hour of day (0-23) for ``now`` in ``timezone_name``.

    An unset or unknown timezone falls back to the process-local hour.
    """
    name = (timezone_name or "").strip()
    if name:
        try:
            return now.astimezone(ZoneInfo(name)).hour
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return now.astimezone().hour


def _clean(value: str | None) -> str | None:
    text = (value or "").strip()
    return text or None


def resolved_texts(config: MealQuestionConfig) -> dict[TimeWindow, str | None]:
    base = _clean(config.text)
    return {
        TimeWindow.MORNING: _clean(config.text_morning) or base,
        TimeWindow.NOON: _clean(config.text_noon) or base,
        TimeWindow.NIGHT: _clean(config.text_night) or base,
    }


def pick_prompt_text(config: MealQuestionConfig, now: datetime | None = None) -> str | None:
    texts = resolved_texts(config)
    if not any(texts.values()):
        return None
    current = now or datetime.now().astimezone()
    return texts[window_for_hour(hour_in_timezone(current, config.timezone))]
