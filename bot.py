from __future__ import annotations

import dataclasses

import discord
from discord.ext import commands

from config.defaults import COMMAND_PREFIX
from config.settings import describe_meal_question_config
from config.settings import get_token
from config.settings import load_bot_config
from config.settings import load_env_file
from config.settings import load_meal_question_config
from config.settings import load_storage_config
from jobs.scheduler import MealScheduler
from meals.completion import CompletionClient
from meals.nutrition import NutritionAdvisor
from meals.nutrition_prompt import default_nutrition_prompt_path
from meals.nutrition_prompt import load_nutrition_prompt
from meals.prompts import MealPromptDispatcher
from meals.storage import MealStorage
from meals.tracking import PromptTracker
from misc.runtime_wiring import wire_bot_runtime


def build_bot() -> tuple[commands.Bot, str]:
    load_env_file()

    token = get_token()
    if not token:
        raise RuntimeError("Missing DISCORD_TOKEN env var")

    meal_question_config = load_meal_question_config()
    storage_config = load_storage_config()
    bot_config = load_bot_config()

    print(f"[CFG] meal_question {describe_meal_question_config(meal_question_config)}")
    print(
        f"[CFG] db={storage_config.db_path} sweep_cron={bot_config.sweep_cron!r} "
        f"nudge=!{bot_config.nudge_command} nudge_text={'set' if bot_config.nudge_text else '(none)'} "
        f"openai={'set' if bot_config.openai_api_key else '(none)'}"
    )

    storage = MealStorage.open(storage_config.db_path)

    prompt_path = bot_config.nutrition_prompt_path or default_nutrition_prompt_path()
    nutrition_prompt, prompt_warning = load_nutrition_prompt(prompt_path)
    if prompt_warning:
        print(f"[CFG] {prompt_warning}")
    if bot_config.openai_model:
        nutrition_prompt = dataclasses.replace(nutrition_prompt, model=bot_config.openai_model)

    completion = CompletionClient.from_api_key(bot_config.openai_api_key, model=nutrition_prompt.model)
    if completion is None:
        print("[CFG] OPENAI_API_KEY is not set; !nutrition will report that it is unavailable")

    nutrition_advisor = NutritionAdvisor(
        storage=storage,
        completion=completion,
        prompt=nutrition_prompt,
        timezone_name=meal_question_config.timezone,
    )
    tracker = PromptTracker(storage)

    intents = discord.Intents.default()
    intents.message_content = True

    bot = commands.Bot(command_prefix=COMMAND_PREFIX, intents=intents)

    wire_bot_runtime(
        bot,
        storage=storage,
        tracker=tracker,
        nutrition_advisor=nutrition_advisor,
        prompt_dispatcher=MealPromptDispatcher(bot=bot, config=meal_question_config, tracker=tracker),
        scheduler=MealScheduler(),
        meal_question_config=meal_question_config,
        sweep_cron=bot_config.sweep_cron,
        nudge_command=bot_config.nudge_command,
        nudge_text=bot_config.nudge_text,
    )
    return bot, token


def main() -> None:
    bot, token = build_bot()
    bot.run(token)


if __name__ == "__main__":
    main()
