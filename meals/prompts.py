from __future__ import annotations

from datetime import datetime

from config.settings import MealQuestionConfig
from meals.targets import resolve_target_channel
from meals.targets import resolve_target_guild
from meals.targets import resolve_target_role
from meals.text_picker import pick_prompt_text
from meals.tracking import PromptTracker


class MealPromptDispatcher:
    def __init__(self, *, bot, config: MealQuestionConfig, tracker: PromptTracker) -> None:
        self.bot = bot
        self.config = config
        self.tracker = tracker

    async def send(self, *, now: datetime | None = None) -> None:
        guild = await resolve_target_guild(self.bot, self.config.guild_id)
        if guild is None:
            print(
                "[MealPrompt] cannot determine the target server; set MEAL_QUESTION_GUILD_ID "
                "or keep the bot in exactly one server"
            )
            return

        channel = await resolve_target_channel(guild, self.config.channel_name)
        if channel is None:
            print(f"[MealPrompt] target channel not found or not text-capable: {self.config.channel_name!r}")
            return

        role = await resolve_target_role(guild, self.config.role_name)
        mention = f"{role.mention} " if role is not None else ""

        picked = pick_prompt_text(self.config, now)
        if not picked:
            print(
                "[MealPrompt] prompt text is not configured; set MEAL_QUESTION_TEXT "
                "or MEAL_QUESTION_TEXT_MORNING/NOON/NIGHT"
            )
            return
        text = f"{mention}{picked}".strip()

        try:
            sent = await channel.send(text)
        except Exception as e:
            print(f"[MealPrompt] send failed channel={getattr(channel, 'id', '?')}: {e}")
            return

        try:
            await self.tracker.track(str(sent.id), str(channel.id), now=now)
        except Exception as e:
            print(f"[MealPrompt] tracking failed message_id={sent.id}: {e}")
            return
        print(f"[MealPrompt] sent prompt message_id={sent.id} channel_id={channel.id}")
