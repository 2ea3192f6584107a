from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from config.defaults import DEFAULT_HISTORY_LIMIT
from config.defaults import NUTRITION_WINDOW_DAYS
from db.migrate import apply_sqlite_migrations
from db.migrate import list_schema_migrations_sync
from meals.models import MealRecord
from meals.models import TrackedPrompt
from meals.models import as_utc
from meals.models import utc_now
from meals.store import delete_expired_tracked_prompts_sync
from meals.store import fetch_live_tracked_prompt_sync
from meals.store import fetch_meals_since_sync
from meals.store import fetch_recent_meals_sync
from meals.store import insert_meal_record_sync
from meals.store import insert_tracked_prompt_sync


class StorageNotInitializedError(RuntimeError):
    pass


def default_migrations_dir() -> str:
    return str(Path(__file__).resolve().parents[1] / "migrations")


def init_db(db_path: str, migrations_dir: str | None = None) -> sqlite3.Connection:
    # discord.py loop + asyncio.to_thread share this connection.
    conn = sqlite3.connect(db_path, check_same_thread=False)
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    apply_sqlite_migrations(conn, migrations_dir or default_migrations_dir())
    return conn


class MealStorage:
    """Async handle over the shared sqlite connection.

    Constructed once at startup and passed to every component that needs
    storage. When ``db_conn`` is None the storage is unavailable: writes are
    skipped with a log line, tracked-prompt lookups report "not tracked" and
    history reads raise :class:`StorageNotInitializedError`.
    """

    def __init__(self, *, db_conn: sqlite3.Connection | None, db_lock: asyncio.Lock | None = None) -> None:
        self.db_conn = db_conn
        self.db_lock = db_lock or asyncio.Lock()

    @classmethod
    def open(cls, db_path: str, *, migrations_dir: str | None = None) -> MealStorage:
        try:
            conn = init_db(db_path, migrations_dir)
        except Exception as e:
            print(f"[Storage] init failed for db={db_path}: {e}; running without storage")
            return cls(db_conn=None)
        latest = list_schema_migrations_sync(conn, limit=1)
        schema = latest[0][0] if latest else "none"
        print(f"[Storage] connected db={db_path} schema={schema}")
        return cls(db_conn=conn)

    @property
    def available(self) -> bool:
        return self.db_conn is not None

    def close(self) -> None:
        if self.db_conn is not None:
            self.db_conn.close()
            self.db_conn = None
            print("[Storage] connection closed")

    def _require_conn(self) -> sqlite3.Connection:
        if self.db_conn is None:
            raise StorageNotInitializedError("Storage is not initialized; meal history is unavailable.")
        return self.db_conn

    async def add_meal_record(
        self,
        owner_user_id: str,
        text: str,
        *,
        now: datetime | None = None,
    ) -> MealRecord | None:
        if self.db_conn is None:
            print("[Storage] not initialized; skipping meal_history insert")
            return None
        created_at = as_utc(now or utc_now())
        async with self.db_lock:
            return await asyncio.to_thread(
                insert_meal_record_sync,
                self.db_conn,
                owner_user_id=str(owner_user_id),
                text=text,
                created_at=created_at,
            )

    async def get_recent_meals(self, owner_user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[MealRecord]:
        conn = self._require_conn()
        async with self.db_lock:
            return await asyncio.to_thread(fetch_recent_meals_sync, conn, str(owner_user_id), int(limit))

    async def get_recent_meals_window(
        self,
        owner_user_id: str,
        days: int = NUTRITION_WINDOW_DAYS,
        *,
        now: datetime | None = None,
    ) -> list[MealRecord]:
        conn = self._require_conn()
        since = as_utc(now or utc_now()) - timedelta(days=int(days))
        async with self.db_lock:
            return await asyncio.to_thread(fetch_meals_since_sync, conn, str(owner_user_id), since.timestamp())

    async def add_tracked_prompt(self, prompt: TrackedPrompt) -> TrackedPrompt | None:
        if self.db_conn is None:
            print("[Storage] not initialized; skipping tracked_prompts insert")
            return None
        async with self.db_lock:
            return await asyncio.to_thread(insert_tracked_prompt_sync, self.db_conn, prompt)

    async def get_live_tracked_prompt(self, message_id: str, *, now: datetime | None = None) -> TrackedPrompt | None:
        if self.db_conn is None:
            print("[Storage] not initialized; skipping tracked_prompts lookup")
            return None
        now_ts = as_utc(now or utc_now()).timestamp()
        async with self.db_lock:
            return await asyncio.to_thread(fetch_live_tracked_prompt_sync, self.db_conn, str(message_id), now_ts)

    async def is_tracked_prompt(self, message_id: str, *, now: datetime | None = None) -> bool:
        return await self.get_live_tracked_prompt(message_id, now=now) is not None

    async def delete_expired_tracked_prompts(self, *, now: datetime | None = None) -> int:
        conn = self._require_conn()
        now_ts = as_utc(now or utc_now()).timestamp()
        async with self.db_lock:
            return await asyncio.to_thread(delete_expired_tracked_prompts_sync, conn, now_ts)
