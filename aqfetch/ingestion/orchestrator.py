"""
aqfetch/ingestion/orchestrator.py

One fetch cycle across every configured source.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait

from aqfetch.domain.outcome import TaskOutcome
from aqfetch.domain.source import Source
from aqfetch.ingestion.task_runner import SourceTaskRunner, TaskCancellation
from aqfetch.logging_utils import log_event
from aqfetch.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


class CycleState:
    IDLE = "idle"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    NOTIFYING = "notifying"
    SHUTTING_DOWN = "shutting_down"


_TRANSITIONS: dict[str, frozenset[str]] = {
    CycleState.IDLE: frozenset({CycleState.RUNNING, CycleState.SHUTTING_DOWN}),
    CycleState.RUNNING: frozenset({CycleState.AGGREGATING}),
    CycleState.AGGREGATING: frozenset({CycleState.NOTIFYING}),
    CycleState.NOTIFYING: frozenset({CycleState.IDLE}),
    CycleState.SHUTTING_DOWN: frozenset(),
}


class FetchCycleOrchestrator:
    """
    Fan out one task per source, wait for all of them, log every outcome and
    signal completion.

    Every source gets its own worker thread, so no task waits for another to
    start. Without `task_timeout_seconds` the cycle waits for every task, so a
    hung adapter stalls the cycle. With it, tasks still fetching when the bound
    expires are cancelled and reported as failures; their workers finish in the
    background without writing or notifying. A task already writing or mailing
    at that point is waited for.
    """

    def __init__(
        self,
        *,
        sources: Sequence[Source],
        runner: SourceTaskRunner,
        dispatcher: NotificationDispatcher,
        dry_run: bool = False,
        task_timeout_seconds: float | None = None,
    ) -> None:
        self._sources = tuple(sources)
        self._runner = runner
        self._dispatcher = dispatcher
        self._dry_run = dry_run
        self._task_timeout_seconds = task_timeout_seconds
        self._state = CycleState.IDLE
        self._cycles_completed = 0

    @property
    def state(self) -> str:
        return self._state

    @property
    def sources(self) -> tuple[Source, ...]:
        return self._sources

    @property
    def cycles_completed(self) -> int:
        return self._cycles_completed

    def run_cycle(self) -> list[TaskOutcome]:
        self._transition(CycleState.RUNNING)
        try:
            return self._run_cycle()
        finally:
            if self._state not in (CycleState.IDLE, CycleState.SHUTTING_DOWN):
                # The cycle body raised; the next tick must still be able to run.
                log_event(logger, logging.ERROR, "cycle_aborted", state=self._state)
                self._state = CycleState.IDLE

    def _run_cycle(self) -> list[TaskOutcome]:
        logger.info("Running all fetch tasks.")
        outcomes = self._run_tasks()

        self._transition(CycleState.AGGREGATING)
        if not self._dry_run:
            logger.info("All data grabbed and saved.")
        for outcome in outcomes:
            log_event(
                logger,
                logging.INFO if outcome.is_success else logging.WARNING,
                "task_outcome",
                **outcome.as_log_fields(),
            )

        self._transition(CycleState.NOTIFYING)
        if self._dry_run:
            logger.info("Dry run completed, have a good day!")
        else:
            self._dispatcher.notify_cycle_complete()
            logger.info("Fetch cycle finished, have a good day!")

        self._cycles_completed += 1
        self._transition(CycleState.IDLE)
        return outcomes

    def shutdown(self, reason: str) -> None:
        """
        Enter the terminal state; no further cycles may start.
        """

        log_event(logger, logging.CRITICAL, "orchestrator_shutdown", reason=reason)
        self._transition(CycleState.SHUTTING_DOWN)

    def _run_tasks(self) -> list[TaskOutcome]:
        if not self._sources:
            logger.warning("No sources configured; nothing to fetch.")
            return []

        cancellations = [TaskCancellation() for _ in self._sources]
        executor = ThreadPoolExecutor(
            max_workers=len(self._sources),
            thread_name_prefix="fetch",
        )
        try:
            futures = [
                executor.submit(self._runner.run, source, cancellation)
                for source, cancellation in zip(self._sources, cancellations)
            ]
            if self._task_timeout_seconds is not None:
                wait(futures, timeout=self._task_timeout_seconds)

            outcomes = []
            for source, future, cancellation in zip(self._sources, futures, cancellations):
                # A worker that committed to a side effect is waited for, so
                # nothing is written or mailed after the cycle completes.
                if self._task_timeout_seconds is None or future.done() or not cancellation.cancel():
                    outcomes.append(self._collect(source, future))
                else:
                    outcomes.append(self._timed_out(source))
            return outcomes
        finally:
            executor.shutdown(wait=self._task_timeout_seconds is None, cancel_futures=True)

    def _collect(self, source: Source, future: Future[TaskOutcome]) -> TaskOutcome:
        try:
            return future.result()
        except Exception as exc:
            logger.exception("Fetch task raised source=%s", source.name)
            return TaskOutcome.failure(source=source.name, error_message=f"Unexpected error: {exc}")

    def _timed_out(self, source: Source) -> TaskOutcome:
        error_message = f"Fetch timed out after {self._task_timeout_seconds:g}s."
        log_event(logger, logging.ERROR, "fetch_timed_out", source=source.name, error=error_message)
        self._dispatcher.notify_failure(source.contacts, source.name, error_message)
        return TaskOutcome.failure(source=source.name, error_message=error_message)

    def _transition(self, target: str) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Invalid cycle transition {self._state} -> {target}.")
        logger.debug("Cycle state %s -> %s", self._state, target)
        self._state = target
