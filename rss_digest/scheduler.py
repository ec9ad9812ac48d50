from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import DigestConfig
from .exceptions import DigestError

logger = logging.getLogger(__name__)

JOB_ID = "digest"
# Overlapping runs are allowed: a slow run never blocks the next trigger.
MAX_CONCURRENT_RUNS = 3


def run_once(job: Callable[[], object]) -> None:
    """Run the job now; failures are logged, never raised."""
    try:
        job()
    except DigestError:
        logger.exception("Digest run failed")


def build_scheduler(
    config: DigestConfig,
    job: Callable[[], object],
    *,
    run_now: bool = False,
    scheduler: Optional[BlockingScheduler] = None,
) -> BlockingScheduler:
    """
    Arm `job` on the configured cron cadence.

    With `run_now`, one extra run fires as soon as the scheduler starts.
    """
    scheduler = scheduler or BlockingScheduler(timezone=timezone.utc)
    trigger = CronTrigger.from_crontab(config.cron_schedule, timezone=timezone.utc)
    scheduler.add_job(
        run_once,
        trigger,
        args=[job],
        id=JOB_ID,
        max_instances=MAX_CONCURRENT_RUNS,
        coalesce=False,
    )
    if run_now:
        scheduler.add_job(
            run_once,
            "date",
            args=[job],
            id=f"{JOB_ID}-now",
            run_date=datetime.now(timezone.utc),
        )
    return scheduler
