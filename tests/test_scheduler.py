from __future__ import annotations

import io
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config.settings import MealQuestionConfig
from jobs.scheduler import PROMPT_JOB_ID
from jobs.scheduler import SWEEP_JOB_ID
from jobs.scheduler import MealScheduler
from jobs.scheduler import _translate_day_of_week
from jobs.scheduler import build_cron_trigger
from jobs.scheduler import fire_and_forget
from jobs.scheduler import validate_meal_question_schedule


# 2026-03-01 is a Sunday.
SUNDAY_MIDNIGHT_UTC = datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)


def _full_config(**overrides) -> MealQuestionConfig:
    values = dict(
        cron="0 21 * * *",
        timezone="Asia/Tokyo",
        channel_name="general",
        text="What did you eat?",
    )
    values.update(overrides)
    return MealQuestionConfig(**values)


class CronTriggerTests(unittest.TestCase):
    def test_daily_trigger_fires_in_configured_timezone(self):
        trigger = build_cron_trigger("0 21 * * *", "Asia/Tokyo")
        fire = trigger.get_next_fire_time(None, SUNDAY_MIDNIGHT_UTC)
        self.assertEqual(fire.astimezone(timezone.utc), datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))

    def test_crontab_weekday_numbers_are_sunday_based(self):
        self.assertEqual(_translate_day_of_week("0"), "sun")
        self.assertEqual(_translate_day_of_week("7"), "sun")
        self.assertEqual(_translate_day_of_week("1-5"), "mon-fri")
        self.assertEqual(_translate_day_of_week("0-6"), "sun,mon-sat")
        self.assertEqual(_translate_day_of_week("0-7"), "*")
        self.assertEqual(_translate_day_of_week("mon,3"), "mon,wed")
        with self.assertRaises(ValueError):
            _translate_day_of_week("8")

        trigger = build_cron_trigger("30 8 * * 1", "UTC")
        fire = trigger.get_next_fire_time(None, SUNDAY_MIDNIGHT_UTC)
        self.assertEqual(fire.astimezone(timezone.utc), datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc))

    def test_six_field_expression_has_seconds(self):
        trigger = build_cron_trigger("15 0 9 * * *", "UTC")
        fire = trigger.get_next_fire_time(None, SUNDAY_MIDNIGHT_UTC)
        self.assertEqual(fire.astimezone(timezone.utc), datetime(2026, 3, 1, 9, 0, 15, tzinfo=timezone.utc))

    def test_invalid_input_raises_value_error(self):
        for expression, tz in (
            ("0 21 * *", "UTC"),
            ("61 21 * * *", "UTC"),
            ("0 21 * * *", "Not/AZone"),
            ("0 21 * * *", None),
            ("", "UTC"),
        ):
            with self.assertRaises(ValueError, msg=f"{expression!r} {tz!r}"):
                build_cron_trigger(expression, tz)


class ValidateScheduleTests(unittest.TestCase):
    def test_complete_config_has_no_problems(self):
        self.assertEqual(validate_meal_question_schedule(_full_config()), [])

    def test_missing_cron_reports_only_that(self):
        problems = validate_meal_question_schedule(_full_config(cron=None, timezone=None, channel_name=None))
        self.assertEqual(len(problems), 1)
        self.assertIn("MEAL_QUESTION_CRON is not set", problems[0])

    def test_reports_each_missing_or_invalid_value(self):
        problems = validate_meal_question_schedule(
            _full_config(timezone=None, channel_name=None, guild_id="not-a-snowflake")
        )
        joined = "\n".join(problems)
        self.assertIn("MEAL_QUESTION_TZ is not set", joined)
        self.assertIn("MEAL_QUESTION_CHANNEL_NAME is not set", joined)
        self.assertIn("MEAL_QUESTION_GUILD_ID", joined)

    def test_rejected_expression_is_reported(self):
        problems = validate_meal_question_schedule(_full_config(cron="every day"))
        self.assertEqual(len(problems), 1)
        self.assertIn("rejected", problems[0])


class MealSchedulerTests(unittest.IsolatedAsyncioTestCase):
    async def test_registers_prompt_and_sweep_jobs(self):
        scheduler = MealScheduler(AsyncIOScheduler())

        async def send():
            return None

        async def sweep():
            return 0

        with redirect_stdout(io.StringIO()):
            scheduler.start()
            try:
                self.assertTrue(scheduler.register_prompt_job(_full_config(), send))
                self.assertTrue(scheduler.register_sweep_job("0 4 * * *", "Asia/Tokyo", sweep))
                # Re-registering replaces rather than duplicates.
                self.assertTrue(scheduler.register_prompt_job(_full_config(cron="0 8 * * *"), send))
                job_ids = sorted(job.id for job in scheduler.scheduler.get_jobs())
            finally:
                scheduler.shutdown()

        self.assertEqual(job_ids, sorted([PROMPT_JOB_ID, SWEEP_JOB_ID]))

    async def test_invalid_prompt_config_is_logged_and_skipped(self):
        scheduler = MealScheduler(AsyncIOScheduler())

        async def send():
            return None

        buf = io.StringIO()
        with redirect_stdout(buf):
            self.assertFalse(scheduler.register_prompt_job(_full_config(timezone=None), send))
        self.assertIn("[Scheduler] meal prompt disabled: MEAL_QUESTION_TZ is not set", buf.getvalue())
        self.assertEqual(scheduler.scheduler.get_jobs(), [])

    async def test_start_is_idempotent(self):
        scheduler = MealScheduler(AsyncIOScheduler())
        with redirect_stdout(io.StringIO()):
            self.assertTrue(scheduler.start())
            self.assertFalse(scheduler.start())
            self.assertTrue(scheduler.running)
            scheduler.shutdown()

    async def test_fire_and_forget_swallows_job_errors(self):
        async def boom():
            raise RuntimeError("discord down")

        buf = io.StringIO()
        with redirect_stdout(buf):
            await fire_and_forget("meal_question_prompt", boom)()
        self.assertIn("[Scheduler] job meal_question_prompt failed: discord down", buf.getvalue())


if __name__ == "__main__":
    unittest.main()
