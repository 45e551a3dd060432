"""Monthly credit reset job."""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from database import reset_monthly_credits

logger = logging.getLogger(__name__)

CREDIT_RESET_JOB_ID = "monthly_credit_reset"

scheduler = BackgroundScheduler(timezone="UTC")


def run_credit_reset() -> int:
    logger.info("Resetting monthly credits...")
    updated = reset_monthly_credits()
    logger.info("Credits reset for %s users", updated)
    return updated


def start_scheduler() -> None:
    # Midnight UTC on the first day of every month.
    trigger = CronTrigger(day=1, hour=0, minute=0, timezone="UTC")
    scheduler.add_job(run_credit_reset, trigger, id=CREDIT_RESET_JOB_ID, replace_existing=True)
    if not scheduler.running:
        scheduler.start()


def stop_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
