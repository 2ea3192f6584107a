from __future__ import annotations

from datetime import datetime

from meals.models import MealRecord
from meals.storage import MealStorage
from meals.tracking import PromptTracker


def referenced_message_id(message) -> str | None:
    ref = getattr(message, "reference", None)
    ref_id = getattr(ref, "message_id", None) if ref is not None else None
    if ref_id is None:
        return None
    return str(ref_id)


async def handle_meal_reply(
    message,
    *,
    tracker: PromptTracker,
    storage: MealStorage,
    now: datetime | None = None,
) -> MealRecord | None:
    """Record a reply to a tracked meal prompt as a meal-history entry."""
    ref_id = referenced_message_id(message)
    if ref_id is None:
        return None

    try:
        tracked = await tracker.is_tracked(ref_id, now=now)
    except Exception as e:
        print(f"[MealReply] tracked lookup failed ref_message_id={ref_id}: {e}")
        return None
    if not tracked:
        print(f"[MealReply] ignoring reply to untracked message ref_message_id={ref_id}")
        return None

    text = (getattr(message, "content", None) or "").strip()
    if not text:
        print(f"[MealReply] empty reply to ref_message_id={ref_id}; nothing to record")
        return None

    author = getattr(message, "author", None)
    user_id = getattr(author, "id", None)
    if user_id is None:
        print(f"[MealReply] reply to ref_message_id={ref_id} has no author id; skipping")
        return None

    try:
        record = await storage.add_meal_record(str(user_id), text, now=now)
    except Exception as e:
        print(f"[MealReply] meal_history insert failed user_id={user_id}: {e}")
        return None
    if record is not None:
        print(f"[MealReply] recorded meal user_id={user_id} chars={len(text)}")
    return record
