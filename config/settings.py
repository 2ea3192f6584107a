from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from config.defaults import DEFAULT_DB_PATH
from config.defaults import DEFAULT_NUDGE_COMMAND
from config.defaults import DEFAULT_SWEEP_CRON


def load_env_file(path: str | os.PathLike | None = None) -> bool:
    # Real environment variables win over .env entries.
    target = Path(path) if path else Path.cwd() / ".env"
    if not target.exists():
        return False
    return bool(load_dotenv(target, override=False))


def get_env(key: str, default: str | None = None) -> str | None:
    raw = os.getenv(key)
    if raw is None:
        return default
    value = raw.strip().strip('"').strip()
    return value or default


def get_token() -> str | None:
    return get_env("DISCORD_TOKEN") or get_env("TOKEN")


@dataclass(frozen=True, slots=True)
class MealQuestionConfig:
    cron: str | None = None
    timezone: str | None = None
    guild_id: str | None = None
    channel_name: str | None = None
    role_name: str | None = None
    text: str | None = None
    text_morning: str | None = None
    text_noon: str | None = None
    text_night: str | None = None


def load_meal_question_config() -> MealQuestionConfig:
    text = get_env("MEAL_QUESTION_TEXT")
    return MealQuestionConfig(
        cron=get_env("MEAL_QUESTION_CRON"),
        timezone=get_env("MEAL_QUESTION_TZ"),
        guild_id=get_env("MEAL_QUESTION_GUILD_ID"),
        channel_name=get_env("MEAL_QUESTION_CHANNEL_NAME"),
        role_name=get_env("MEAL_QUESTION_ROLE_NAME"),
        text=text,
        text_morning=get_env("MEAL_QUESTION_TEXT_MORNING", text),
        text_noon=get_env("MEAL_QUESTION_TEXT_NOON", text),
        text_night=get_env("MEAL_QUESTION_TEXT_NIGHT", text),
    )


@dataclass(frozen=True, slots=True)
class StorageConfig:
    db_path: str = DEFAULT_DB_PATH


def load_storage_config() -> StorageConfig:
    return StorageConfig(db_path=get_env("GOHAN_DB_PATH", DEFAULT_DB_PATH) or DEFAULT_DB_PATH)


@dataclass(frozen=True, slots=True)
class BotConfig:
    sweep_cron: str = DEFAULT_SWEEP_CRON
    nudge_command: str = DEFAULT_NUDGE_COMMAND
    nudge_text: str | None = None
    openai_api_key: str | None = None
    openai_model: str | None = None
    nutrition_prompt_path: str | None = None


def load_bot_config() -> BotConfig:
    nudge_command = (get_env("MEAL_NUDGE_COMMAND", DEFAULT_NUDGE_COMMAND) or DEFAULT_NUDGE_COMMAND).lstrip("!")
    return BotConfig(
        sweep_cron=get_env("MEAL_SWEEP_CRON", DEFAULT_SWEEP_CRON) or DEFAULT_SWEEP_CRON,
        nudge_command=nudge_command or DEFAULT_NUDGE_COMMAND,
        nudge_text=get_env("MEAL_NUDGE_TEXT"),
        openai_api_key=get_env("OPENAI_API_KEY"),
        openai_model=get_env("OPENAI_MODEL"),
        nutrition_prompt_path=get_env("GOHAN_NUTRITION_PROMPT_PATH"),
    )


def describe_meal_question_config(config: MealQuestionConfig) -> str:
    texts = [
        name
        for name, value in (
            ("morning", config.text_morning),
            ("noon", config.text_noon),
            ("night", config.text_night),
        )
        if value
    ]
    return (
        f"cron={config.cron!r} tz={config.timezone!r} guild={config.guild_id or '(auto)'} "
        f"channel={config.channel_name!r} role={config.role_name!r} "
        f"texts={','.join(texts) or '(none)'}"
    )
