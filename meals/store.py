from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any

from meals.models import MealRecord
from meals.models import TrackedPrompt
from meals.models import from_ts


def _row_to_meal(row: sqlite3.Row | tuple[Any, ...] | None) -> MealRecord | None:
    if row is None:
        return None
    meal_id, owner_user_id, text, created_ts = row
    return MealRecord(
        id=int(meal_id),
        owner_user_id=str(owner_user_id),
        text=str(text or ""),
        created_at=from_ts(created_ts),
    )


def _row_to_tracked(row: sqlite3.Row | tuple[Any, ...] | None) -> TrackedPrompt | None:
    if row is None:
        return None
    tracked_id, message_id, channel_id, created_ts, expires_ts = row
    return TrackedPrompt(
        id=int(tracked_id),
        message_id=str(message_id),
        channel_id=str(channel_id),
        created_at=from_ts(created_ts),
        expires_at=from_ts(expires_ts),
    )


def insert_meal_record_sync(
    conn: sqlite3.Connection,
    *,
    owner_user_id: str,
    text: str,
    created_at: datetime,
) -> MealRecord:
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO meal_history (owner_user_id, text, created_at_utc, created_ts)
        VALUES (?, ?, ?, ?)
        """,
        (str(owner_user_id), text, created_at.isoformat(), created_at.timestamp()),
    )
    conn.commit()
    return MealRecord(
        id=int(cur.lastrowid),
        owner_user_id=str(owner_user_id),
        text=text,
        created_at=created_at,
    )


def fetch_recent_meals_sync(conn: sqlite3.Connection, owner_user_id: str, limit: int) -> list[MealRecord]:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, owner_user_id, text, created_ts
        FROM meal_history
        WHERE owner_user_id = ?
        ORDER BY created_ts DESC, id DESC
        LIMIT ?
        """,
        (str(owner_user_id), max(0, int(limit))),
    )
    return [m for m in (_row_to_meal(r) for r in cur.fetchall()) if m is not None]


def fetch_meals_since_sync(conn: sqlite3.Connection, owner_user_id: str, since_ts: float) -> list[MealRecord]:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, owner_user_id, text, created_ts
        FROM meal_history
        WHERE owner_user_id = ? AND created_ts >= ?
        ORDER BY created_ts DESC, id DESC
        """,
        (str(owner_user_id), float(since_ts)),
    )
    return [m for m in (_row_to_meal(r) for r in cur.fetchall()) if m is not None]


def insert_tracked_prompt_sync(conn: sqlite3.Connection, prompt: TrackedPrompt) -> TrackedPrompt:
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO tracked_prompts (
            message_id, channel_id, created_at_utc, created_ts, expires_at_utc, expires_ts
        )
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            prompt.message_id,
            prompt.channel_id,
            prompt.created_at.isoformat(),
            prompt.created_at.timestamp(),
            prompt.expires_at.isoformat(),
            prompt.expires_at.timestamp(),
        ),
    )
    conn.commit()
    return TrackedPrompt(
        id=int(cur.lastrowid),
        message_id=prompt.message_id,
        channel_id=prompt.channel_id,
        created_at=prompt.created_at,
        expires_at=prompt.expires_at,
    )


def fetch_live_tracked_prompt_sync(
    conn: sqlite3.Connection,
    message_id: str,
    now_ts: float,
) -> TrackedPrompt | None:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, message_id, channel_id, created_ts, expires_ts
        FROM tracked_prompts
        WHERE message_id = ? AND expires_ts > ?
        ORDER BY expires_ts DESC
        LIMIT 1
        """,
        (str(message_id), float(now_ts)),
    )
    return _row_to_tracked(cur.fetchone())


def delete_expired_tracked_prompts_sync(conn: sqlite3.Connection, now_ts: float) -> int:
    cur = conn.cursor()
    cur.execute("DELETE FROM tracked_prompts WHERE expires_ts <= ?", (float(now_ts),))
    conn.commit()
    return int(cur.rowcount or 0)
