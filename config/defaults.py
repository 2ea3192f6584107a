from __future__ import annotations

# Storage
DEFAULT_DB_PATH = "gohan.db"

# Tracked prompt lifecycle
TRACKED_PROMPT_TTL_SECONDS = 24 * 60 * 60
TRACKED_ID_CACHE_CAPACITY = 100
DEFAULT_SWEEP_CRON = "0 4 * * *"

# Time-window bands (local hour, half-open)
MORNING_START_HOUR = 4
NOON_START_HOUR = 11
NIGHT_START_HOUR = 17

# History / nutrition
DEFAULT_HISTORY_LIMIT = 10
NUTRITION_WINDOW_DAYS = 7
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_NUTRITION_MAX_TOKENS = 150
DEFAULT_NUTRITION_TEMPERATURE = 0.7
DEFAULT_NUTRITION_SYSTEM_PROMPT = (
    "You are a nutritionist. Look at the user's recent meal history and tell them, "
    "in one short sentence, which nutrients they are most likely missing. "
    "Keep the tone friendly and casual."
)
DEFAULT_NUTRITION_USER_PROMPT = (
    "Here is my meal history for the last 7 days. "
    "In one sentence, which nutrients am I short on?\n\n{history}"
)

# Commands
COMMAND_PREFIX = "!"
DEFAULT_NUDGE_COMMAND = "eat"

# Scheduler
SCHEDULER_MISFIRE_GRACE_SECONDS = 300
