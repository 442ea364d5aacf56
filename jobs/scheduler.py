"""
Scheduler process.

Enqueues the all-sessions rate check once a day (UTC) and serves the
health endpoints. Evaluation itself runs in dramatiq workers.

Run with: python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.tasks.rate_check import check_all_active_sessions
from ratewatch.config.settings import settings
from ratewatch.utils.logging import setup_logging

RATE_CHECK_JOB_ID = "daily_rate_check"


def enqueue_rate_check() -> None:
    """Send the batch rate check to the worker queue."""
    message = check_all_active_sessions.send()
    logger.info(f"Enqueued daily rate check (message {message.message_id})")


def build_scheduler() -> AsyncIOScheduler:
    """Create the scheduler with the daily rate check job."""
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        enqueue_rate_check,
        CronTrigger(
            hour=settings.daily_check_hour,
            minute=settings.daily_check_minute,
            timezone="UTC",
        ),
        id=RATE_CHECK_JOB_ID,
        name="Daily benchmark rate check",
        replace_existing=True,
        coalesce=True,
        misfire_grace_time=3600,
    )
    return scheduler


async def main() -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    setup_logging(settings.log_level)

    scheduler = build_scheduler()
    scheduler.start()
    set_scheduler(scheduler)
    runner = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    logger.info(
        f"Scheduler started: daily rate check at "
        f"{settings.daily_check_hour:02d}:{settings.daily_check_minute:02d} UTC"
    )
    await stop_event.wait()

    logger.info("Shutting down scheduler...")
    scheduler.shutdown(wait=False)
    set_scheduler(None)
    await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
