"""
aqfetch/ingestion package marker.
"""

from aqfetch.ingestion.orchestrator import CycleState, FetchCycleOrchestrator
from aqfetch.ingestion.task_runner import SourceTaskRunner, log_measurements

__all__ = [
    "CycleState",
    "FetchCycleOrchestrator",
    "SourceTaskRunner",
    "log_measurements",
]
