"""
aqfetch/main.py

Process entry point: load sources, prepare the store, run fetch cycles.
"""

from __future__ import annotations

import argparse
import logging
import signal
from collections.abc import Sequence

from aqfetch.adapters.registry import build_adapter_registry
from aqfetch.config import (
    get_external_http_settings,
    get_fetch_settings,
    get_mail_settings,
    get_webhook_settings,
)
from aqfetch.errors import SchemaInitializationError, SourceConfigError
from aqfetch.ingestion.orchestrator import FetchCycleOrchestrator
from aqfetch.ingestion.task_runner import SourceTaskRunner
from aqfetch.logging_utils import configure_logging
from aqfetch.notifications import NotificationDispatcher, SMTPMailer, WebhookClient
from aqfetch.scheduler.jobs import build_scheduler, run_fetch_cycle
from aqfetch.sources import load_sources, select_source
from aqfetch.storage import SQLAlchemyMeasurementStorage
from db.session import get_engine, get_session_factory

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aqfetch",
        description="Fetch measurements from every configured source and store them.",
        epilog="Example: aqfetch --dryrun --source 'Beijing US Embassy'",
    )
    parser.add_argument(
        "-d",
        "--dryrun",
        action="store_true",
        help=(
            "Run the fetch process but do not save to the database; print the "
            "measurements instead. Sends no notifications."
        ),
    )
    parser.add_argument(
        "-s",
        "--source",
        dest="source",
        default=None,
        help="Run the fetch process with only the named source.",
    )
    parser.add_argument(
        "--noemail",
        action="store_true",
        help="Run the fetch process but do not send failure e-mails.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    settings = get_fetch_settings()
    try:
        sources = load_sources(sources_path=settings.sources_path)
        if args.source:
            sources = [select_source(sources, args.source)]
    except SourceConfigError as exc:
        logger.error("Unable to start: %s", exc)
        return 1

    try:
        registry = build_adapter_registry(
            http_settings=get_external_http_settings(),
            extra_adapters=list(settings.extra_adapters),
        )
    except (ImportError, ValueError) as exc:
        logger.error("Unable to load adapters: %s", exc)
        return 1

    dispatcher = NotificationDispatcher(
        mailer=SMTPMailer(settings=get_mail_settings()),
        webhook=WebhookClient(settings=get_webhook_settings()),
        dry_run=args.dryrun,
        mail_enabled=settings.notifications_enabled and not args.noemail,
    )

    if args.dryrun:
        logger.info("--- Dry run for Testing, nothing is saved to the database. ---")
        runner = SourceTaskRunner(registry=registry, dispatcher=dispatcher, dry_run=True)
        orchestrator = FetchCycleOrchestrator(
            sources=sources,
            runner=runner,
            dispatcher=dispatcher,
            dry_run=True,
            task_timeout_seconds=settings.task_timeout_seconds,
        )
        run_fetch_cycle(orchestrator)
        return 0

    try:
        engine = get_engine()
    except RuntimeError as exc:
        logger.error("Unable to configure the measurement store: %s", exc)
        return 1

    storage = SQLAlchemyMeasurementStorage(
        engine=engine,
        session_factory=get_session_factory(),
        batch_size=settings.storage_batch_size,
    )
    runner = SourceTaskRunner(registry=registry, dispatcher=dispatcher, storage=storage)
    orchestrator = FetchCycleOrchestrator(
        sources=sources,
        runner=runner,
        dispatcher=dispatcher,
        task_timeout_seconds=settings.task_timeout_seconds,
    )

    try:
        storage.ensure_schema()
    except SchemaInitializationError as exc:
        orchestrator.shutdown(str(exc))
        engine.dispose()
        return 1
    logger.info("Indexes created and database ready to go.")

    scheduler = build_scheduler(orchestrator, interval_seconds=settings.fetch_interval_seconds)
    signal.signal(signal.SIGTERM, lambda *_: scheduler.shutdown(wait=False))
    logger.info(
        "Fetching %d sources every %d seconds.",
        len(orchestrator.sources),
        settings.fetch_interval_seconds,
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped.")
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
