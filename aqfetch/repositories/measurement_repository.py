"""
aqfetch/repositories/measurement_repository.py

Persistence layer for canonical measurements.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import DataError, DBAPIError, IntegrityError, StatementError
from sqlalchemy.orm import Session

from aqfetch.domain.measurement import Measurement
from db.models.measurement import DEDUPE_COLUMNS, MeasurementRecord

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 1000


class MeasurementRepository:
    """
    Repository for unordered, deduplicated batch inserts of measurements.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def bulk_insert(
        self,
        rows: Sequence[Measurement],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert rows with PostgreSQL bulk INSERT, skipping existing dedup keys.

        Returns the number of rows actually inserted. A chunk rejected for a
        reason other than a duplicate key is retried row by row so that one bad
        row does not discard its neighbours.
        """

        if not rows:
            return 0

        payloads = self._deduplicate_payloads([self.to_payload(row) for row in rows])
        size = max(1, batch_size)
        inserted = 0
        for start in range(0, len(payloads), size):
            inserted += self._insert_chunk(payloads[start : start + size])
        return inserted

    @staticmethod
    def to_payload(row: Measurement) -> dict[str, Any]:
        return {
            "date_utc": row.date.utc,
            "date_local": row.date.local,
            "parameter": row.parameter,
            "location": row.location,
            "value": row.value,
            "unit": row.unit,
            "city": row.city,
            "country": row.country,
            "source_name": row.source_name,
            "attribution": row.attribution,
            "averaging_period": row.averaging_period,
            "coordinates": row.coordinates,
        }

    @staticmethod
    def build_insert(payloads: Sequence[dict[str, Any]]) -> Any:
        return (
            insert(MeasurementRecord)
            .values(list(payloads))
            .on_conflict_do_nothing(index_elements=list(DEDUPE_COLUMNS))
            .returning(MeasurementRecord.id)
        )

    def _insert_chunk(self, chunk: Sequence[dict[str, Any]]) -> int:
        try:
            with self._session.begin_nested():
                return len(self._session.scalars(self.build_insert(chunk)).all())
        except StatementError as exc:
            if not _is_row_rejection(exc):
                raise
            logger.warning(
                "Bulk insert chunk rejected, retrying per row rows=%s error=%s",
                len(chunk),
                exc.orig if exc.orig is not None else exc,
            )

        inserted = 0
        rejected = 0
        for payload in chunk:
            try:
                with self._session.begin_nested():
                    inserted += len(self._session.scalars(self.build_insert([payload])).all())
            except StatementError as exc:
                if not _is_row_rejection(exc):
                    raise
                rejected += 1
        if rejected:
            logger.warning("Rejected %d measurement rows during per-row insert.", rejected)
        return inserted

    @staticmethod
    def _deduplicate_payloads(payloads: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: set[tuple[Any, ...]] = set()
        deduped_payloads: list[dict[str, Any]] = []

        for payload in payloads:
            key = tuple(payload[column] for column in DEDUPE_COLUMNS)
            if key in seen:
                continue
            seen.add(key)
            deduped_payloads.append(payload)

        return deduped_payloads


def _is_row_rejection(exc: StatementError) -> bool:
    """
    True when the error is caused by the rows themselves: bad data, a
    constraint violation or parameters that could not be bound. Connection
    and server failures are not.
    """

    if isinstance(exc, (DataError, IntegrityError)):
        return True
    return not isinstance(exc, DBAPIError)
