from __future__ import annotations

from datetime import datetime

from meals.storage import MealStorage


async def sweep_expired_prompts(storage: MealStorage, *, now: datetime | None = None) -> int:
    if not storage.available:
        print("[Sweep] storage not initialized; skipping tracked prompt cleanup")
        return 0
    deleted = await storage.delete_expired_tracked_prompts(now=now)
    if deleted > 0:
        print(f"[Sweep] deleted {deleted} expired tracked prompt(s)")
    return deleted
