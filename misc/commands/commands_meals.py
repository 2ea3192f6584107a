from __future__ import annotations

from discord.ext import commands

from meals.completion import CompletionError
from meals.completion import CompletionFailure
from meals.nutrition import NutritionStatus
from meals.nutrition import NutritionSummary
from meals.nutrition import format_history_lines
from misc.commands.command_deps import CommandDeps
from misc.discord_text import reply_chunked


HISTORY_EMPTY_REPLY = "You have no meal history yet."
HISTORY_FAILED_REPLY = "Failed to fetch your meal history."
NUTRITION_FAILED_REPLY = "Failed to get a nutrition summary."

NUTRITION_STATUS_REPLIES = {
    NutritionStatus.NO_HISTORY: "No meals recorded in the last 7 days. Reply to a meal prompt to log one first!",
    NutritionStatus.NOT_CONFIGURED: "The OpenAI API key is not configured. Please contact an admin.",
    NutritionStatus.EMPTY: "Failed to analyze your nutrition.",
}

COMPLETION_FAILURE_REPLIES = {
    CompletionFailure.RATE_LIMITED: "The OpenAI API rate limit was reached. Please wait a bit and try again.",
    CompletionFailure.QUOTA_EXCEEDED: "The OpenAI API quota is exhausted. Please ask an admin to check the API key's quota.",
    CompletionFailure.UNAUTHORIZED: "The OpenAI API key is invalid. Please contact an admin.",
    CompletionFailure.SERVER_ERROR: "The OpenAI API server had an error. Please wait a bit and try again.",
}


def history_reply_text(lines: list[str], limit: int) -> str:
    if not lines:
        return HISTORY_EMPTY_REPLY
    return f"Recent meals (up to {int(limit)}):\n" + "\n".join(lines)


def nutrition_reply_text(summary: NutritionSummary) -> str:
    if summary.status == NutritionStatus.OK:
        return summary.text
    return NUTRITION_STATUS_REPLIES[summary.status]


def completion_failure_reply(error: CompletionError) -> str:
    if error.kind == CompletionFailure.OTHER:
        return f"An error occurred: {error.message}"
    return COMPLETION_FAILURE_REPLIES[error.kind]


async def _safe_reply(ctx: commands.Context, text: str) -> None:
    try:
        await reply_chunked(ctx, text)
    except Exception as e:
        print(f"[Commands] reply failed: {e}")


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
) -> None:
    @bot.command(name="history")
    async def history(ctx: commands.Context):
        author_id = getattr(getattr(ctx, "author", None), "id", None)
        if author_id is None:
            await _safe_reply(ctx, "Could not read your user information.")
            return
        try:
            records = await deps.storage.get_recent_meals(str(author_id), deps.history_limit)
        except Exception as e:
            print(f"[Commands] history failed user_id={author_id}: {e}")
            await _safe_reply(ctx, HISTORY_FAILED_REPLY)
            return
        lines = format_history_lines(records, deps.timezone_name)
        await _safe_reply(ctx, history_reply_text(lines, deps.history_limit))

    @bot.command(name="nutrition")
    async def nutrition(ctx: commands.Context):
        author_id = getattr(getattr(ctx, "author", None), "id", None)
        if author_id is None:
            await _safe_reply(ctx, "Could not read your user information.")
            return
        try:
            summary = await deps.nutrition_advisor.summarize(str(author_id))
        except CompletionError as e:
            print(f"[Commands] nutrition completion failed user_id={author_id} kind={e.kind.value}: {e.message}")
            await _safe_reply(ctx, completion_failure_reply(e))
            return
        except Exception as e:
            print(f"[Commands] nutrition failed user_id={author_id}: {e}")
            await _safe_reply(ctx, NUTRITION_FAILED_REPLY)
            return
        await _safe_reply(ctx, nutrition_reply_text(summary))

    if deps.nudge_text:
        register_nudge(bot, name=deps.nudge_command, text=deps.nudge_text)


def register_nudge(bot: commands.Bot, *, name: str, text: str) -> bool:
    if not name or any(ch.isspace() for ch in name):
        print(f"[Commands] nudge disabled: invalid command name {name!r}")
        return False
    if bot.get_command(name) is not None:
        print(f"[Commands] nudge disabled: !{name} is already a command")
        return False

    async def nudge(ctx: commands.Context):
        await _safe_reply(ctx, text)

    try:
        bot.add_command(commands.Command(nudge, name=name))
    except (commands.CommandRegistrationError, TypeError) as e:
        print(f"[Commands] nudge disabled: {e}")
        return False
    return True
