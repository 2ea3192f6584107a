from __future__ import annotations

import io
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timezone

try:
    import discord
    from discord.ext import commands
except ModuleNotFoundError:
    discord = None
    commands = None

from meals.completion import CompletionError
from meals.completion import CompletionFailure
from meals.models import MealRecord
from meals.nutrition import NutritionStatus
from meals.nutrition import NutritionSummary
from meals.storage import StorageNotInitializedError
from misc.discord_text import chunk_text

if commands is not None:
    from misc.commands.command_deps import CommandDeps
    from misc.commands.commands_meals import COMPLETION_FAILURE_REPLIES
    from misc.commands.commands_meals import HISTORY_EMPTY_REPLY
    from misc.commands.commands_meals import HISTORY_FAILED_REPLY
    from misc.commands.commands_meals import NUTRITION_STATUS_REPLIES
    from misc.commands.commands_meals import register as register_meals


class FakeAuthor:
    id = 42


class FakeCtx:
    def __init__(self):
        self.author = FakeAuthor()
        self.replies: list[str] = []
        self.sent: list[str] = []

    async def reply(self, text, mention_author=True):
        self.replies.append(text)

    async def send(self, text):
        self.sent.append(text)


class StubStorage:
    def __init__(self, records=None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def get_recent_meals(self, owner_user_id, limit=10):
        self.calls.append((owner_user_id, limit))
        if self.error is not None:
            raise self.error
        return self.records[:limit]


class StubAdvisor:
    def __init__(self, summary=None, error: Exception | None = None):
        self.summary = summary
        self.error = error

    async def summarize(self, user_id, *, now=None):
        if self.error is not None:
            raise self.error
        return self.summary


@unittest.skipIf(commands is None, "discord.py not installed")
class MealCommandsTests(unittest.IsolatedAsyncioTestCase):
    def _bot(self, **deps):
        bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
        register_meals(bot, deps=CommandDeps(**deps))
        return bot

    async def _invoke(self, bot, name):
        ctx = FakeCtx()
        with redirect_stdout(io.StringIO()):
            await bot.get_command(name).callback(ctx)
        return ctx

    async def test_history_lists_recent_meals_for_author(self):
        records = [
            MealRecord(owner_user_id="42", text="curry", created_at=datetime(2026, 3, 1, 12, 30, 0, tzinfo=timezone.utc)),
            MealRecord(owner_user_id="42", text="toast", created_at=datetime(2026, 3, 1, 0, 15, 5, tzinfo=timezone.utc)),
        ]
        storage = StubStorage(records)
        bot = self._bot(storage=storage, timezone_name="Asia/Tokyo")

        ctx = await self._invoke(bot, "history")
        self.assertEqual(storage.calls, [("42", 10)])
        self.assertEqual(
            ctx.replies,
            ["Recent meals (up to 10):\n2026-03-01 21:30:00: curry\n2026-03-01 09:15:05: toast"],
        )

    async def test_history_empty_and_failure_replies(self):
        ctx = await self._invoke(self._bot(storage=StubStorage([])), "history")
        self.assertEqual(ctx.replies, [HISTORY_EMPTY_REPLY])

        broken = StubStorage(error=StorageNotInitializedError("no db"))
        ctx = await self._invoke(self._bot(storage=broken), "history")
        self.assertEqual(ctx.replies, [HISTORY_FAILED_REPLY])

    async def test_nutrition_success_and_status_replies(self):
        ok = StubAdvisor(NutritionSummary(status=NutritionStatus.OK, text="More fish, please.", meal_count=3))
        ctx = await self._invoke(self._bot(nutrition_advisor=ok), "nutrition")
        self.assertEqual(ctx.replies, ["More fish, please."])

        for status, reply in NUTRITION_STATUS_REPLIES.items():
            advisor = StubAdvisor(NutritionSummary(status=status))
            ctx = await self._invoke(self._bot(nutrition_advisor=advisor), "nutrition")
            self.assertEqual(ctx.replies, [reply], status)

    async def test_every_completion_failure_has_a_reply(self):
        for kind in CompletionFailure:
            advisor = StubAdvisor(error=CompletionError(kind, "upstream said no"))
            ctx = await self._invoke(self._bot(nutrition_advisor=advisor), "nutrition")
            self.assertEqual(len(ctx.replies), 1, kind)
            if kind == CompletionFailure.OTHER:
                self.assertIn("upstream said no", ctx.replies[0])
            else:
                self.assertEqual(ctx.replies[0], COMPLETION_FAILURE_REPLIES[kind])

    async def test_nudge_command_only_when_text_configured(self):
        self.assertIsNone(self._bot().get_command("eat"))

        bot = self._bot(nudge_command="gohan", nudge_text="Time to eat!")
        ctx = await self._invoke(bot, "gohan")
        self.assertEqual(ctx.replies, ["Time to eat!"])

    async def test_nudge_name_collision_is_logged_and_skipped(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            bot = self._bot(storage=StubStorage([]), nudge_command="history", nudge_text="eat!")
            bad = self._bot(nudge_command="go eat", nudge_text="eat!")
        self.assertIn("[Commands] nudge disabled: !history is already a command", buf.getvalue())
        self.assertIn("invalid command name", buf.getvalue())
        self.assertIsNone(bad.get_command("go eat"))

        ctx = await self._invoke(bot, "history")
        self.assertEqual(ctx.replies, [HISTORY_EMPTY_REPLY])

    async def test_long_reply_is_chunked(self):
        advisor = StubAdvisor(NutritionSummary(status=NutritionStatus.OK, text=("word " * 500).strip()))
        ctx = await self._invoke(self._bot(nutrition_advisor=advisor), "nutrition")
        self.assertEqual(len(ctx.replies), 1)
        self.assertGreaterEqual(len(ctx.sent), 1)
        self.assertTrue(all(len(part) <= 1900 for part in ctx.replies + ctx.sent))


class ChunkTextTests(unittest.TestCase):
    def test_lines_are_packed_whole(self):
        text = "\n".join(f"2026-03-0{i}: meal {i}" for i in range(1, 6))
        parts = chunk_text(text, limit=40)
        self.assertTrue(all(len(p) <= 40 for p in parts))
        self.assertEqual("\n".join(parts).splitlines(), text.splitlines())

    def test_overlong_line_splits_on_spaces(self):
        parts = chunk_text("aaa bbb ccc ddd", limit=7)
        self.assertEqual(parts, ["aaa bbb", "ccc ddd"])
        self.assertEqual(chunk_text("x" * 10, limit=4), ["xxxx", "xxxx", "xx"])
        self.assertEqual(chunk_text("short"), ["short"])


if __name__ == "__main__":
    unittest.main()
