from __future__ import annotations

import re
from typing import Any

import discord


SNOWFLAKE_RE = re.compile(r"^[0-9]{17,20}$")

# Guild channel types a prompt can be posted to.
TEXT_CHANNEL_TYPES: tuple[type, ...] = (
    discord.TextChannel,
    discord.VoiceChannel,
    discord.StageChannel,
    discord.Thread,
)


def is_snowflake_id(value: Any) -> bool:
    return isinstance(value, str) and bool(SNOWFLAKE_RE.fullmatch(value))


def is_text_sendable(channel: Any) -> bool:
    return isinstance(channel, TEXT_CHANNEL_TYPES)


async def _fetch_guild(bot, guild_id: int):
    guild = bot.get_guild(int(guild_id))
    if guild is not None:
        return guild
    return await bot.fetch_guild(int(guild_id))


async def resolve_target_guild(bot, guild_id: str | None):
    if guild_id:
        if not is_snowflake_id(guild_id):
            print(f"[MealPrompt] MEAL_QUESTION_GUILD_ID is not a valid server id: {guild_id!r}")
            return None
        try:
            return await _fetch_guild(bot, int(guild_id))
        except Exception as e:
            print(f"[MealPrompt] could not fetch guild {guild_id}: {e}")
            return None

    try:
        guilds = [g async for g in bot.fetch_guilds(limit=None)]
    except Exception as e:
        print(f"[MealPrompt] could not list guilds: {e}")
        return None
    if len(guilds) != 1:
        return None
    try:
        return await _fetch_guild(bot, int(guilds[0].id))
    except Exception as e:
        print(f"[MealPrompt] could not fetch guild {guilds[0].id}: {e}")
        return None


async def resolve_target_channel(guild, channel_name: str | None):
    if guild is None or not channel_name:
        return None
    try:
        channels = await guild.fetch_channels()
    except Exception as e:
        print(f"[MealPrompt] could not fetch channels for guild {getattr(guild, 'id', '?')}: {e}")
        return None
    channel = discord.utils.get(channels, name=channel_name)
    if channel is None or not is_text_sendable(channel):
        return None
    return channel


async def resolve_target_role(guild, role_name: str | None):
    if guild is None or not role_name:
        return None
    try:
        roles = await guild.fetch_roles()
    except Exception as e:
        print(f"[MealPrompt] could not fetch roles for guild {getattr(guild, 'id', '?')}: {e}")
        return None
    return discord.utils.get(roles, name=role_name)
