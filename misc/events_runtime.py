from __future__ import annotations

import discord
from discord.ext import commands

from meals.replies import handle_meal_reply
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def schedule_jobs(boot: RuntimeBootDeps) -> bool:
    """Register the prompt and sweep jobs and start the scheduler once."""
    if boot.scheduler.running:
        return False
    boot.scheduler.register_prompt_job(boot.meal_question_config, boot.prompt_dispatcher.send)
    boot.scheduler.register_sweep_job(boot.sweep_cron, boot.sweep_timezone, boot.sweep_func)
    return boot.scheduler.start()


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"Gohan is online as {bot.user}")
        if not deps.storage.available:
            print("[Storage] not initialized; meal history and prompt tracking are disabled")
        schedule_jobs(boot)

    @bot.event
    async def on_message(message: discord.Message):
        if message.author.bot:
            return

        # Only registered commands are diverted; "!! ramen" replies still count as meals.
        if (message.content or "").lstrip().startswith(deps.command_prefix):
            ctx = await bot.get_context(message)
            if ctx.valid:
                await bot.invoke(ctx)
                return

        await handle_meal_reply(message, tracker=deps.tracker, storage=deps.storage)
