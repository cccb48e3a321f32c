"""
Storage layer interface for canonical measurements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from aqfetch.domain.measurement import Measurement


class MeasurementStorage(ABC):
    """
    Persistence gateway for measurement batches.

    `ensure_schema` must complete before the first `write_batch`. Writes from
    several sources may run concurrently.
    """

    @abstractmethod
    def ensure_schema(self) -> None:
        """
        Create the measurement table and its indexes if they are missing.
        """

    @abstractmethod
    def write_batch(self, source_name: str, measurements: Sequence[Measurement]) -> int:
        """
        Persist one source's measurements and return the newly inserted count.
        """
