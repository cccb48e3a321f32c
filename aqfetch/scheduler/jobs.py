"""
aqfetch/scheduler/jobs.py

APScheduler wiring that re-arms the fetch cycle on a fixed interval.

The cycle runs once immediately and then every `interval_seconds`. The job
allows a single running instance: if a cycle is still waiting on a slow
source when the next tick is due, that tick is skipped rather than overlapped
(`coalesce=True` folds any backlog into one run).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.blocking import BlockingScheduler

from aqfetch.ingestion.orchestrator import FetchCycleOrchestrator

logger = logging.getLogger(__name__)

FETCH_CYCLE_JOB_ID = "fetch_cycle"


def run_fetch_cycle(orchestrator: FetchCycleOrchestrator) -> None:
    """
    Scheduler entry point for one cycle.
    """

    try:
        outcomes = orchestrator.run_cycle()
    except Exception:
        logger.exception("Scheduler: fetch_cycle failed")
        return

    failures = sum(1 for outcome in outcomes if not outcome.is_success)
    logger.info(
        "Scheduler: fetch_cycle complete sources=%s failures=%s inserted=%s",
        len(outcomes),
        failures,
        sum(outcome.inserted_count for outcome in outcomes),
    )


def build_scheduler(
    orchestrator: FetchCycleOrchestrator,
    *,
    interval_seconds: int,
) -> BlockingScheduler:
    """
    Return a configured but *not yet started* ``BlockingScheduler``.
    """

    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        run_fetch_cycle,
        trigger="interval",
        seconds=interval_seconds,
        args=[orchestrator],
        id=FETCH_CYCLE_JOB_ID,
        name="Fetch cycle",
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
