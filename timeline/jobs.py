"""
Periodic triggers for slot generation, the expiry sweep and reminders.

Each job runs as an asyncio task started from the app startup hook when
JOBS_ENABLED is set. The blocking database work runs via asyncio.to_thread.
Deployments that prefer cron can leave the jobs off and call the
/internal endpoints instead.
"""

import asyncio
import logging
from typing import Callable

from timeline.core import config
from timeline.database import SessionLocal
from timeline.services.reminders import send_upcoming_reminders
from timeline.services.slot_generator import generate_slots
from timeline.services.sweeper import sweep

logger = logging.getLogger(__name__)


def run_generation() -> None:
    db = SessionLocal()
    try:
        generate_slots(db)
    finally:
        db.close()


def run_sweep() -> None:
    sweep(SessionLocal)


def run_reminders() -> None:
    db = SessionLocal()
    try:
        send_upcoming_reminders(db)
    finally:
        db.close()


async def periodic(name: str, job: Callable[[], None], interval_seconds: int) -> None:
    logger.info('%s loop started (every %ss)', name, interval_seconds)

    while True:
        try:
            await asyncio.to_thread(job)
        except asyncio.CancelledError:
            logger.info('%s loop cancelled', name)
            raise
        except Exception:
            logger.exception('%s loop error', name)

        await asyncio.sleep(interval_seconds)


def start_jobs() -> list[asyncio.Task]:
    return [
        asyncio.create_task(periodic('slot_generation', run_generation, config.GENERATION_INTERVAL_SECONDS)),
        asyncio.create_task(periodic('expiry_sweep', run_sweep, config.SWEEP_INTERVAL_SECONDS)),
        asyncio.create_task(periodic('reminders', run_reminders, config.REMINDER_INTERVAL_SECONDS)),
    ]


async def stop_jobs(tasks: list[asyncio.Task]) -> None:
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
