"""
Daily trigger for the purchase job.

APScheduler's AsyncIOScheduler runs the job on the application's event
loop once a day at the configured civil time. The cron trigger is bound
to a named timezone (Australia/Sydney by default), so the run stays at
01:31 local time across daylight-saving changes.
"""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import Settings, settings
from app.core.exceptions import RunInProgressError
from app.core.logging import get_logger
from app.worker.worker import run_purchase_job

logger = get_logger(__name__)

JOB_ID = "domain_purchase"

_scheduler: Optional[AsyncIOScheduler] = None


async def scheduled_purchase_run() -> None:
    """Job entrypoint; a run that is still active makes this trigger a no-op."""
    try:
        await run_purchase_job()
    except RunInProgressError:
        logger.warning("Skipping scheduled run: previous run still active")
    except Exception as exc:
        logger.error("Scheduled purchase run failed: %s", exc, exc_info=True)


def build_trigger(source: Settings = settings) -> CronTrigger:
    return CronTrigger(
        hour=source.schedule_hour,
        minute=source.schedule_minute,
        timezone=source.schedule_timezone,
    )


def build_scheduler(source: Settings = settings) -> AsyncIOScheduler:
    """
    Build the scheduler with the daily purchase job registered.

    Returns a configured but *not yet started* scheduler. ``max_instances=1``
    keeps runs from overlapping; ``coalesce`` folds missed fire times into
    one run.
    """
    scheduler = AsyncIOScheduler(timezone=source.schedule_timezone)
    scheduler.add_job(
        scheduled_purchase_run,
        trigger=build_trigger(source),
        id=JOB_ID,
        name="Daily drop-list purchase",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    return scheduler


def start_scheduler() -> None:
    """Start the daily trigger (called from the application lifespan)."""
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler is already running")
        return

    _scheduler = build_scheduler()
    _scheduler.start()
    job = _scheduler.get_job(JOB_ID)
    logger.info(
        "Scheduler started (%02d:%02d %s, next run %s)",
        settings.schedule_hour,
        settings.schedule_minute,
        settings.schedule_timezone,
        job.next_run_time if job else "n/a",
    )


def stop_scheduler() -> None:
    """Stop the trigger. A run already in progress is drained by the lifespan."""
    global _scheduler

    if _scheduler is None:
        return
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("Scheduler stopped")
