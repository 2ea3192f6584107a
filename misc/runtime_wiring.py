from __future__ import annotations

from config.defaults import COMMAND_PREFIX
from config.defaults import DEFAULT_HISTORY_LIMIT
from jobs.sweep import sweep_expired_prompts
from misc.commands.command_deps import CommandDeps
from misc.commands.commands_meals import register as register_meals
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps
from misc.events_runtime import register_runtime_events


def wire_bot_runtime(
    bot,
    *,
    storage,
    tracker,
    nutrition_advisor,
    prompt_dispatcher,
    scheduler,
    meal_question_config,
    sweep_cron: str,
    nudge_command: str,
    nudge_text: str | None,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> None:
    command_deps = CommandDeps(
        storage=storage,
        nutrition_advisor=nutrition_advisor,
        timezone_name=meal_question_config.timezone,
        history_limit=history_limit,
        nudge_command=nudge_command,
        nudge_text=nudge_text,
    )
    register_meals(bot, deps=command_deps)

    async def sweep():
        return await sweep_expired_prompts(storage)

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            storage=storage,
            tracker=tracker,
            command_prefix=COMMAND_PREFIX,
        ),
        boot=RuntimeBootDeps(
            scheduler=scheduler,
            prompt_dispatcher=prompt_dispatcher,
            meal_question_config=meal_question_config,
            sweep_cron=sweep_cron,
            sweep_timezone=meal_question_config.timezone,
            sweep_func=sweep,
        ),
    )
