"""
db/models/measurement.py

Canonical air-quality measurement row.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

DEDUPE_INDEX_NAME = "uq_measurements_location_parameter_date_utc"
DEDUPE_COLUMNS: tuple[str, ...] = ("location", "parameter", "date_utc")


class MeasurementRecord(Base):
    __tablename__ = "measurements"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    date_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    date_local: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Local timestamp as reported upstream, offset included",
    )
    parameter: Mapped[str] = mapped_column(String(32), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str] = mapped_column(String(8), nullable=False)
    source_name: Mapped[str] = mapped_column(String(255), nullable=False)
    attribution: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    averaging_period: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="{value, unit}",
    )
    coordinates: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
        comment="{latitude, longitude}",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index(DEDUPE_INDEX_NAME, *DEDUPE_COLUMNS, unique=True),
        Index("ix_measurements_city", "city"),
        Index("ix_measurements_date_utc", "date_utc"),
        Index("ix_measurements_city_location", "city", "location"),
        Index("ix_measurements_country", "country"),
    )


# Descending indexes reference mapped attributes, so they are declared once the
# class exists.
Index(
    "ix_measurements_country_date_utc",
    MeasurementRecord.country,
    MeasurementRecord.date_utc.desc(),
)
Index(
    "ix_measurements_location_date_utc",
    MeasurementRecord.location,
    MeasurementRecord.date_utc.desc(),
)
