from __future__ import annotations

import re
from typing import Awaitable, Callable
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from config.defaults import SCHEDULER_MISFIRE_GRACE_SECONDS
from config.settings import MealQuestionConfig
from meals.targets import is_snowflake_id


# crontab weekday numbering: 0 and 7 are Sunday.
CRONTAB_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")
_DOW_NUMERIC_RE = re.compile(r"(\d+)(?:-(\d+))?(/\d+)?")

PROMPT_JOB_ID = "meal_question_prompt"
SWEEP_JOB_ID = "tracked_prompt_sweep"

JobFunc = Callable[[], Awaitable[object]]


def resolve_timezone(timezone_name: str | None) -> ZoneInfo:
    name = (timezone_name or "").strip()
    if not name:
        raise ValueError("timezone is not set")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"unknown timezone: {name!r}") from e


def _translate_day_of_week(field: str) -> str:
    out: list[str] = []
    for part in field.split(","):
        m = _DOW_NUMERIC_RE.fullmatch(part)
        if not m:
            out.append(part)
            continue
        start = int(m.group(1))
        end = int(m.group(2)) if m.group(2) is not None else None
        step = m.group(3) or ""
        if start > 7 or (end is not None and end > 7):
            raise ValueError(f"day-of-week out of range: {part!r}")
        if end is None:
            out.append(f"{CRONTAB_WEEKDAYS[start]}{step}")
        elif start == 0 and end == 7 and not step:
            out.append("*")
        elif start == 0 and end >= 1 and not step:
            out.append("sun")
            out.append(f"mon-{CRONTAB_WEEKDAYS[end]}")
        else:
            out.append(f"{CRONTAB_WEEKDAYS[start]}-{CRONTAB_WEEKDAYS[end]}{step}")
    return ",".join(out)


def build_cron_trigger(expression: str | None, timezone_name: str | None) -> CronTrigger:
    """Build a trigger from a crontab expression.

    Accepts five fields (minute hour day month weekday) or six with a leading
    seconds field. Raises ValueError for anything the trigger cannot honour.
    """
    fields = (expression or "").split()
    if len(fields) == 5:
        second = "0"
        minute, hour, day, month, day_of_week = fields
    elif len(fields) == 6:
        second, minute, hour, day, month, day_of_week = fields
    else:
        raise ValueError(f"expected 5 or 6 cron fields, got {len(fields)}: {expression!r}")

    tz = resolve_timezone(timezone_name)
    try:
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=_translate_day_of_week(day_of_week),
            timezone=tz,
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid cron expression {expression!r}: {e}") from e


def validate_meal_question_schedule(config: MealQuestionConfig) -> list[str]:
    if not config.cron:
        return ["MEAL_QUESTION_CRON is not set; the meal prompt schedule is not configured."]
    problems: list[str] = []
    if not config.timezone:
        problems.append("MEAL_QUESTION_TZ is not set (e.g. Asia/Tokyo).")
    if not config.channel_name:
        problems.append("MEAL_QUESTION_CHANNEL_NAME is not set.")
    if config.guild_id and not is_snowflake_id(config.guild_id):
        problems.append(f"MEAL_QUESTION_GUILD_ID is not a valid server id: {config.guild_id!r}")
    if config.timezone:
        try:
            build_cron_trigger(config.cron, config.timezone)
        except ValueError as e:
            problems.append(f"MEAL_QUESTION_CRON/MEAL_QUESTION_TZ rejected: {e} (example: 0 21 * * *)")
    return problems


def fire_and_forget(name: str, func: JobFunc) -> Callable[[], Awaitable[None]]:
    async def _run() -> None:
        try:
            await func()
        except Exception as e:
            print(f"[Scheduler] job {name} failed: {e}")

    _run.__name__ = f"run_{name}"
    return _run


class MealScheduler:
    def __init__(self, scheduler: AsyncIOScheduler | None = None) -> None:
        self.scheduler = scheduler or AsyncIOScheduler()

    def add_cron_job(self, job_id: str, func: JobFunc, trigger: CronTrigger, *, name: str | None = None):
        return self.scheduler.add_job(
            fire_and_forget(job_id, func),
            trigger,
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=SCHEDULER_MISFIRE_GRACE_SECONDS,
        )

    def register_prompt_job(self, config: MealQuestionConfig, send_prompt: JobFunc) -> bool:
        problems = validate_meal_question_schedule(config)
        if problems:
            for problem in problems:
                print(f"[Scheduler] meal prompt disabled: {problem}")
            return False
        trigger = build_cron_trigger(config.cron, config.timezone)
        self.add_cron_job(PROMPT_JOB_ID, send_prompt, trigger, name="Meal question prompt")
        print(
            f"[Scheduler] meal prompt scheduled cron={config.cron!r} tz={config.timezone!r} "
            f"channel={config.channel_name!r} role={config.role_name!r}"
        )
        return True

    def register_sweep_job(self, cron: str, timezone_name: str | None, sweep: JobFunc) -> bool:
        try:
            trigger = build_cron_trigger(cron, timezone_name or "UTC")
        except ValueError as e:
            print(f"[Scheduler] tracked prompt sweep disabled: {e}")
            return False
        self.add_cron_job(SWEEP_JOB_ID, sweep, trigger, name="Expired tracked prompt sweep")
        print(f"[Scheduler] tracked prompt sweep scheduled cron={cron!r} tz={timezone_name or 'UTC'!r}")
        return True

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> bool:
        if self.scheduler.running:
            return False
        self.scheduler.start()
        print(f"[Scheduler] started jobs={len(self.scheduler.get_jobs())}")
        return True

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            print("[Scheduler] stopped")
