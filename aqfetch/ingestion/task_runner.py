"""
aqfetch/ingestion/task_runner.py

Runs one source through fetch, validation, normalization and persistence.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError

from aqfetch.adapters.registry import AdapterRegistry
from aqfetch.domain.measurement import Measurement
from aqfetch.domain.outcome import TaskOutcome
from aqfetch.domain.source import Source
from aqfetch.errors import AdapterError, AdapterNotFoundError, InvalidFetchResultError
from aqfetch.logging_utils import log_event
from aqfetch.normalization.measurement_normalizer import MeasurementNormalizer
from aqfetch.notifications.dispatcher import NotificationDispatcher
from aqfetch.storage.base import MeasurementStorage
from aqfetch.validators.fetch_result_validator import validate_fetch_result

logger = logging.getLogger(__name__)

ADAPTER_NOT_FOUND_MESSAGE = "Could not find adapter."
INVALID_RESULTS_MESSAGE = "Adapter returned invalid results."
DRY_RUN_PREFIX = "[Dry run] "
ABANDONED_MESSAGE = "Task was cancelled before it finished."

MeasurementObserver = Callable[[Source, Sequence[Measurement]], None]


class TaskCancellation:
    """
    Hand-off between a worker and the orchestrator waiting on it.

    Exactly one side wins: the worker by committing to a side effect (store
    write, failure e-mail, dry-run output) or the orchestrator by cancelling
    the task once its time is up. A cancelled worker performs no side effects.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._committed = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """
        Cancel unless the worker already committed; returns whether it did.
        """

        with self._lock:
            if self._committed:
                return False
            self._cancelled = True
            return True

    def commit(self) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            self._committed = True
            return True


def log_measurements(source: Source, measurements: Sequence[Measurement]) -> None:
    """
    Default dry-run observer: one JSON document per measurement.
    """

    for measurement in measurements:
        logger.info(json.dumps(measurement.to_document(), default=str, sort_keys=True))


class SourceTaskRunner:
    """
    Turn one source's fetch into a `TaskOutcome`.

    `run` never raises. Adapter and validation failures become failure
    outcomes and trigger a failure notification; persistence failures are
    logged and reported as a success with nothing inserted, because the fetch
    itself worked. Side effects happen only after committing `cancellation`,
    so a task the orchestrator has given up on stays silent.
    """

    def __init__(
        self,
        *,
        registry: AdapterRegistry,
        dispatcher: NotificationDispatcher,
        storage: MeasurementStorage | None = None,
        normalizer: MeasurementNormalizer | None = None,
        dry_run: bool = False,
        observer: MeasurementObserver | None = None,
    ) -> None:
        if storage is None and not dry_run:
            raise ValueError("A measurement storage is required outside dry-run mode.")
        self._registry = registry
        self._dispatcher = dispatcher
        self._storage = storage
        self._normalizer = normalizer or MeasurementNormalizer()
        self._dry_run = dry_run
        self._observer = observer or log_measurements

    def run(self, source: Source, cancellation: TaskCancellation | None = None) -> TaskOutcome:
        cancellation = cancellation or TaskCancellation()
        try:
            return self._run(source, cancellation)
        except Exception as exc:
            logger.exception("Unhandled error while running source=%s", source.name)
            return TaskOutcome.failure(source=source.name, error_message=f"Unexpected error: {exc}")

    def _run(self, source: Source, cancellation: TaskCancellation) -> TaskOutcome:
        try:
            adapter = self._registry.get(source.adapter)
        except AdapterNotFoundError:
            log_event(logger, logging.ERROR, "adapter_not_found", source=source.name, adapter=source.adapter)
            return TaskOutcome.failure(source=source.name, error_message=ADAPTER_NOT_FOUND_MESSAGE)

        started = time.monotonic()
        try:
            data = adapter.fetch_data(source)
        except Exception as exc:
            error_message = str(exc) or type(exc).__name__
            level = logging.ERROR if isinstance(exc, AdapterError) else logging.CRITICAL
            log_event(
                logger,
                level,
                "fetch_failed",
                source=source.name,
                adapter=source.adapter,
                error=error_message,
                duration_seconds=round(time.monotonic() - started, 3),
            )
            return self._fail(source, error_message, cancellation)

        log_event(
            logger,
            logging.INFO,
            "fetch_completed",
            source=source.name,
            duration_seconds=round(time.monotonic() - started, 3),
        )

        try:
            result = validate_fetch_result(data)
        except InvalidFetchResultError as exc:
            log_event(logger, logging.ERROR, "fetch_result_invalid", source=source.name, error=str(exc))
            return self._fail(source, INVALID_RESULTS_MESSAGE, cancellation)

        measurements = self._normalizer.normalize(source=source, result=result)
        pruned = len(result.measurements) - len(measurements)
        if pruned:
            log_event(logger, logging.DEBUG, "measurements_pruned", source=source.name, pruned=pruned)

        if not measurements:
            return self._success(source, 0)

        if not cancellation.commit():
            return self._abandoned(source)

        if self._dry_run:
            self._observer(source, measurements)
            return self._success(source, len(measurements))

        try:
            inserted = self._storage.write_batch(source.name, measurements)  # type: ignore[union-attr]
        except SQLAlchemyError as exc:
            log_event(
                logger,
                logging.ERROR,
                "measurements_persist_failed",
                source=source.name,
                submitted=len(measurements),
                error=str(exc),
            )
            inserted = 0
        return self._success(source, inserted)

    def _success(self, source: Source, count: int) -> TaskOutcome:
        message = f"New measurements inserted for {source.name}: {count}"
        if self._dry_run:
            message = DRY_RUN_PREFIX + message
        return TaskOutcome.success(source=source.name, message=message, inserted_count=count)

    def _fail(self, source: Source, error_message: str, cancellation: TaskCancellation) -> TaskOutcome:
        if not cancellation.commit():
            return self._abandoned(source)
        self._dispatcher.notify_failure(source.contacts, source.name, error_message)
        return TaskOutcome.failure(source=source.name, error_message=error_message)

    def _abandoned(self, source: Source) -> TaskOutcome:
        log_event(logger, logging.WARNING, "task_abandoned", source=source.name)
        return TaskOutcome.failure(source=source.name, error_message=ABANDONED_MESSAGE)
