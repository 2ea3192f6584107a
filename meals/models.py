from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from config.defaults import TRACKED_PROMPT_TTL_SECONDS


TRACKED_PROMPT_TTL = timedelta(seconds=TRACKED_PROMPT_TTL_SECONDS)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_ts(ts: float) -> datetime:
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class MealRecord:
    owner_user_id: str
    text: str
    created_at: datetime
    id: int | None = None


@dataclass(frozen=True, slots=True)
class TrackedPrompt:
    message_id: str
    channel_id: str
    created_at: datetime
    expires_at: datetime
    id: int | None = None

    @classmethod
    def new(cls, message_id: str, channel_id: str, created_at: datetime | None = None) -> TrackedPrompt:
        created = as_utc(created_at) if created_at else utc_now()
        return cls(
            message_id=str(message_id),
            channel_id=str(channel_id),
            created_at=created,
            expires_at=created + TRACKED_PROMPT_TTL,
        )

    def is_live(self, now: datetime | None = None) -> bool:
        return as_utc(now or utc_now()) < self.expires_at
