"""
aqfetch/domain/measurement.py

Canonical measurement record produced by normalization.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

# Attribute names of the stored document, in output order.
CANONICAL_FIELDS: tuple[str, ...] = (
    "date",
    "parameter",
    "location",
    "value",
    "unit",
    "city",
    "country",
    "sourceName",
    "attribution",
    "averagingPeriod",
    "coordinates",
)


@dataclass(frozen=True)
class MeasurementDate:
    """
    Observation time; `utc` is timezone-aware, `local` is kept as reported.
    """

    utc: datetime
    local: str | None = None


@dataclass(frozen=True)
class Measurement:
    """
    Typed canonical record prepared for persistence.
    """

    date: MeasurementDate
    parameter: str
    location: str
    value: float
    unit: str
    city: str
    country: str
    source_name: str
    attribution: list[dict[str, Any]] | None = None
    averaging_period: dict[str, Any] | None = None
    coordinates: dict[str, Any] | None = None

    @property
    def dedup_key(self) -> tuple[str, str, datetime]:
        return (self.location, self.parameter, self.date.utc)

    def to_document(self) -> dict[str, Any]:
        """
        Render the record with its public attribute names.

        Optional attributes are omitted when unset.
        """

        document: dict[str, Any] = {
            "date": {"utc": self.date.utc.isoformat(), "local": self.date.local},
            "parameter": self.parameter,
            "location": self.location,
            "value": self.value,
            "unit": self.unit,
            "city": self.city,
            "country": self.country,
            "sourceName": self.source_name,
        }
        if self.attribution is not None:
            document["attribution"] = self.attribution
        if self.averaging_period is not None:
            document["averagingPeriod"] = self.averaging_period
        if self.coordinates is not None:
            document["coordinates"] = self.coordinates
        return document
