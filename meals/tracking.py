from __future__ import annotations

from datetime import datetime

from config.defaults import TRACKED_ID_CACHE_CAPACITY
from meals.models import TrackedPrompt
from meals.models import as_utc
from meals.models import utc_now
from meals.storage import MealStorage


class TrackedIdCache:
    """Bounded map of prompt message id to expiry kept in memory.

    Once an insert pushes the size past ``capacity`` the whole map is cleared
    and reseeded with the entry just inserted. This is not an LRU.
    """

    def __init__(self, capacity: int = TRACKED_ID_CACHE_CAPACITY) -> None:
        self.capacity = max(1, int(capacity))
        self._expiry: dict[str, datetime] = {}

    def add(self, message_id: str, expires_at: datetime) -> None:
        key = str(message_id)
        self._expiry[key] = as_utc(expires_at)
        if len(self._expiry) > self.capacity:
            self._expiry.clear()
            self._expiry[key] = as_utc(expires_at)

    def is_live(self, message_id: str, now: datetime | None = None) -> bool:
        expires_at = self._expiry.get(str(message_id))
        if expires_at is None:
            return False
        if as_utc(now or utc_now()) < expires_at:
            return True
        self._expiry.pop(str(message_id), None)
        return False

    def clear(self) -> None:
        self._expiry.clear()

    def __contains__(self, message_id: object) -> bool:
        return str(message_id) in self._expiry

    def __len__(self) -> int:
        return len(self._expiry)


class PromptTracker:
    """Remembers which prompt messages a reply may be attributed to.

    The persisted ``tracked_prompts`` table is the source of truth; the cache
    only short-circuits lookups for prompts this process sent or has already
    confirmed.
    """

    def __init__(self, storage: MealStorage, cache: TrackedIdCache | None = None) -> None:
        self.storage = storage
        self.cache = cache if cache is not None else TrackedIdCache()

    async def track(self, message_id: str, channel_id: str, *, now: datetime | None = None) -> TrackedPrompt:
        prompt = TrackedPrompt.new(str(message_id), str(channel_id), created_at=now)
        saved = None
        try:
            saved = await self.storage.add_tracked_prompt(prompt)
        except Exception as e:
            print(f"[Storage] tracked_prompts insert failed message_id={prompt.message_id}: {e}")
        self.cache.add(prompt.message_id, prompt.expires_at)
        return saved or prompt

    async def is_tracked(self, message_id: str, *, now: datetime | None = None) -> bool:
        key = str(message_id)
        if self.cache.is_live(key, now):
            return True
        prompt = await self.storage.get_live_tracked_prompt(key, now=now)
        if prompt is None:
            return False
        self.cache.add(key, prompt.expires_at)
        print(f"[MealReply] confirmed tracked prompt from storage message_id={key} (cached)")
        return True
