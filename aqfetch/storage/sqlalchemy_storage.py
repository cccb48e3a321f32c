"""
SQLAlchemy-backed storage implementation for measurements.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.schema import CreateTable

from aqfetch.domain.measurement import Measurement
from aqfetch.errors import SchemaInitializationError
from aqfetch.logging_utils import log_event
from aqfetch.repositories.measurement_repository import MeasurementRepository
from aqfetch.storage.base import MeasurementStorage
from db.models.measurement import DEDUPE_INDEX_NAME, MeasurementRecord

logger = logging.getLogger(__name__)


class SQLAlchemyMeasurementStorage(MeasurementStorage):
    """
    Persist measurements through the repository, one session per batch.
    """

    def __init__(
        self,
        *,
        engine: Engine,
        session_factory: sessionmaker[Session] | None = None,
        batch_size: int = 1000,
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory or sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        self._batch_size = max(1, batch_size)

    def ensure_schema(self) -> None:
        table = MeasurementRecord.__table__
        try:
            with self._engine.begin() as connection:
                # Columns only; CreateTable does not emit the indexes.
                connection.execute(CreateTable(table, if_not_exists=True))
        except SQLAlchemyError as exc:
            raise SchemaInitializationError(f"Unable to create table '{table.name}': {exc}") from exc

        # Indexes are created one by one so an existing table picks up any that
        # are missing. Only the dedup index is mandatory.
        for index in sorted(table.indexes, key=lambda item: item.name != DEDUPE_INDEX_NAME):
            try:
                with self._engine.begin() as connection:
                    index.create(connection, checkfirst=True)
            except SQLAlchemyError as exc:
                if index.name == DEDUPE_INDEX_NAME:
                    raise SchemaInitializationError(
                        f"Unable to create unique index '{index.name}': {exc}"
                    ) from exc
                log_event(
                    logger,
                    logging.WARNING,
                    "secondary_index_failed",
                    index=index.name,
                    error=str(exc),
                )

        log_event(logger, logging.INFO, "schema_ready", table=table.name, indexes=len(table.indexes))

    def write_batch(self, source_name: str, measurements: Sequence[Measurement]) -> int:
        if not measurements:
            return 0

        with self._session_factory() as session:
            repository = MeasurementRepository(session)
            try:
                inserted = repository.bulk_insert(measurements, batch_size=self._batch_size)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise

        log_event(
            logger,
            logging.DEBUG,
            "measurements_written",
            source=source_name,
            submitted=len(measurements),
            inserted=inserted,
        )
        return inserted
