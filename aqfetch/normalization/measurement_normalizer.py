"""
Normalization of adapter output into canonical measurements.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from aqfetch.domain.measurement import Measurement, MeasurementDate
from aqfetch.domain.source import Source
from aqfetch.validators.fetch_result_validator import RawFetchResult


class MeasurementNormalizer:
    """
    Convert validated raw results into canonical measurement records.

    Records missing a usable `date`, `parameter`, `value` or `unit`, or left
    without a location after defaulting, are dropped. Stateless and safe to
    share between threads.
    """

    def normalize(self, *, source: Source, result: RawFetchResult) -> list[Measurement]:
        measurements: list[Measurement] = []
        for raw in result.measurements:
            measurement = self.normalize_record(source=source, raw=raw, fallback_location=result.name)
            if measurement is not None:
                measurements.append(measurement)
        return measurements

    def normalize_record(
        self,
        *,
        source: Source,
        raw: object,
        fallback_location: str | None = None,
    ) -> Measurement | None:
        if not isinstance(raw, Mapping):
            return None

        date = self._parse_date(raw.get("date"))
        parameter = _clean_str(raw.get("parameter"))
        value = self._parse_value(raw.get("value"))
        unit = _clean_str(raw.get("unit"))
        if date is None or parameter is None or value is None or unit is None:
            return None

        location = _clean_str(raw.get("location")) or _clean_str(fallback_location)
        if location is None:
            return None

        return Measurement(
            date=date,
            parameter=parameter,
            location=location,
            value=value,
            unit=unit,
            city=_clean_str(raw.get("city")) or source.city,
            country=_clean_str(raw.get("country")) or source.country,
            source_name=source.name,
            attribution=self._parse_attribution(raw.get("attribution")),
            averaging_period=self._parse_averaging_period(raw.get("averagingPeriod")),
            coordinates=self._parse_coordinates(raw.get("coordinates")),
        )

    @staticmethod
    def _parse_date(value: object) -> MeasurementDate | None:
        local: str | None = None
        if isinstance(value, Mapping):
            local_raw = value.get("local")
            if isinstance(local_raw, datetime):
                local = local_raw.isoformat()
            else:
                local = _clean_str(local_raw)
            value = value.get("utc")

        utc = _parse_timestamp(value)
        if utc is None:
            return None
        return MeasurementDate(utc=utc, local=local)

    @staticmethod
    def _parse_value(value: object) -> float | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        parsed = float(value)
        if not math.isfinite(parsed):
            return None
        return parsed

    @staticmethod
    def _parse_attribution(value: object) -> list[dict[str, Any]] | None:
        if isinstance(value, Mapping):
            value = [value]
        if not isinstance(value, list):
            return None
        entries = [
            {key: field for key, field in item.items() if isinstance(key, str) and _is_json_scalar(field)}
            for item in value
            if isinstance(item, Mapping) and _clean_str(item.get("name"))
        ]
        return entries or None

    @staticmethod
    def _parse_averaging_period(value: object) -> dict[str, Any] | None:
        if not isinstance(value, Mapping):
            return None
        period_value = value.get("value")
        if isinstance(period_value, bool) or not isinstance(period_value, (int, float)):
            return None
        return {"value": period_value, "unit": _clean_str(value.get("unit"))}

    @staticmethod
    def _parse_coordinates(value: object) -> dict[str, Any] | None:
        if not isinstance(value, Mapping):
            return None
        latitude = value.get("latitude")
        longitude = value.get("longitude")
        for coordinate in (latitude, longitude):
            if isinstance(coordinate, bool) or not isinstance(coordinate, (int, float)):
                return None
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            return None
        return {"latitude": float(latitude), "longitude": float(longitude)}


def _clean_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _is_json_scalar(value: object) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    return value is None or isinstance(value, (str, int, bool))


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
