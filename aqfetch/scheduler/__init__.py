"""
aqfetch/scheduler package marker.
"""

from aqfetch.scheduler.jobs import FETCH_CYCLE_JOB_ID, build_scheduler, run_fetch_cycle

__all__ = ["FETCH_CYCLE_JOB_ID", "build_scheduler", "run_fetch_cycle"]
