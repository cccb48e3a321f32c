"""
aqfetch/domain package marker.
"""

from aqfetch.domain.measurement import CANONICAL_FIELDS, Measurement, MeasurementDate
from aqfetch.domain.outcome import OutcomeStatus, TaskOutcome
from aqfetch.domain.source import Source

__all__ = [
    "CANONICAL_FIELDS",
    "Measurement",
    "MeasurementDate",
    "OutcomeStatus",
    "Source",
    "TaskOutcome",
]
