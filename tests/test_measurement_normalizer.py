"""
tests/test_measurement_normalizer.py

Pytest unit tests for MeasurementNormalizer.

Pure Python, no database and no network.

Coverage
--------
- Defaulting of location, country and city
- Canonical whitelist projection
- Source name overwrite
- Per-record pruning of unusable records
- Date parsing (mapping, string, naive, offset)
- Optional attribute cleanup
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from aqfetch.domain.measurement import CANONICAL_FIELDS, Measurement
from aqfetch.domain.source import Source
from aqfetch.normalization.measurement_normalizer import MeasurementNormalizer
from aqfetch.validators.fetch_result_validator import RawFetchResult


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def normalizer() -> MeasurementNormalizer:
    return MeasurementNormalizer()


@pytest.fixture()
def source() -> Source:
    return Source(
        name="X",
        adapter="x",
        country="US",
        city="Metropolis",
        contacts=("a@b.com",),
    )


def _result(*records: object, name: str | None = "Station 1") -> RawFetchResult:
    return RawFetchResult(name=name, measurements=list(records))


def _record(**overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "date": {"utc": "2024-01-01T00:00:00Z", "local": "2024-01-01T08:00:00+08:00"},
        "parameter": "pm25",
        "value": 12,
        "unit": "µg/m3",
    }
    record.update(overrides)
    return record


# ---------------------------------------------------------------------------
# Defaulting and projection
# ---------------------------------------------------------------------------


class TestDefaulting:
    def test_minimal_record_is_backfilled_from_result_and_source(self, normalizer, source) -> None:
        measurements = normalizer.normalize(source=source, result=_result(_record()))

        assert len(measurements) == 1
        measurement = measurements[0]
        assert measurement.location == "Station 1"
        assert measurement.country == "US"
        assert measurement.city == "Metropolis"
        assert measurement.source_name == "X"
        assert measurement.parameter == "pm25"
        assert measurement.value == 12.0
        assert measurement.unit == "µg/m3"
        assert measurement.date.utc == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert measurement.date.local == "2024-01-01T08:00:00+08:00"

    def test_record_values_win_over_defaults(self, normalizer, source) -> None:
        raw = _record(location="Harbor", city="Gotham", country="CA")

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert (measurement.location, measurement.city, measurement.country) == ("Harbor", "Gotham", "CA")

    def test_blank_record_values_fall_back_to_defaults(self, normalizer, source) -> None:
        raw = _record(location="  ", city="", country=None)

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert (measurement.location, measurement.city, measurement.country) == ("Station 1", "Metropolis", "US")

    def test_source_name_cannot_be_spoofed(self, normalizer, source) -> None:
        raw = _record(sourceName="Somebody Else", source_name="Other")

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert measurement.source_name == "X"

    def test_extra_fields_never_reach_the_document(self, normalizer, source) -> None:
        raw = _record(
            mobile=True,
            sourceType="government",
            attribution=[{"name": "EPA", "url": "https://epa.example"}],
            averagingPeriod={"value": 1, "unit": "hours"},
            coordinates={"latitude": 40.0, "longitude": -74.0},
        )

        document = normalizer.normalize(source=source, result=_result(raw))[0].to_document()

        assert set(document) == set(CANONICAL_FIELDS)
        assert "mobile" not in document
        assert "sourceType" not in document

    def test_unset_optional_fields_are_omitted_from_the_document(self, normalizer, source) -> None:
        document = normalizer.normalize(source=source, result=_result(_record()))[0].to_document()

        assert set(document) == set(CANONICAL_FIELDS) - {"attribution", "averagingPeriod", "coordinates"}
        assert document["date"] == {"utc": "2024-01-01T00:00:00+00:00", "local": "2024-01-01T08:00:00+08:00"}


# ---------------------------------------------------------------------------
# Pruning
# ---------------------------------------------------------------------------


class TestPruning:
    @pytest.mark.parametrize("missing", ["date", "parameter", "value", "unit"])
    def test_record_missing_required_field_is_dropped(self, normalizer, source, missing) -> None:
        raw = _record()
        del raw[missing]

        assert normalizer.normalize(source=source, result=_result(raw)) == []

    def test_bad_record_does_not_abort_the_batch(self, normalizer, source) -> None:
        records = (_record(), _record(value="high"), "not a record", _record(parameter="o3"))

        measurements = normalizer.normalize(source=source, result=_result(*records))

        assert [m.parameter for m in measurements] == ["pm25", "o3"]

    @pytest.mark.parametrize("value", [True, float("nan"), float("inf"), None, "12"])
    def test_unusable_values_are_dropped(self, normalizer, source, value) -> None:
        assert normalizer.normalize(source=source, result=_result(_record(value=value))) == []

    def test_zero_value_is_kept(self, normalizer, source) -> None:
        measurements = normalizer.normalize(source=source, result=_result(_record(value=0)))

        assert measurements[0].value == 0.0

    def test_record_without_any_location_is_dropped(self, normalizer, source) -> None:
        assert normalizer.normalize(source=source, result=_result(_record(), name=None)) == []

    def test_all_records_pruned_yields_empty_list(self, normalizer, source) -> None:
        assert normalizer.normalize(source=source, result=_result(_record(unit=""), {})) == []


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


class TestDates:
    def test_plain_string_date_is_utc(self, normalizer, source) -> None:
        measurement = normalizer.normalize(source=source, result=_result(_record(date="2024-03-05T10:30:00Z")))[0]

        assert measurement.date.utc == datetime(2024, 3, 5, 10, 30, tzinfo=timezone.utc)
        assert measurement.date.local is None

    def test_offset_date_is_converted_to_utc(self, normalizer, source) -> None:
        raw = _record(date={"utc": "2024-03-05T10:30:00+02:00"})

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert measurement.date.utc == datetime(2024, 3, 5, 8, 30, tzinfo=timezone.utc)

    def test_naive_datetime_is_treated_as_utc(self, normalizer, source) -> None:
        raw = _record(date={"utc": datetime(2024, 3, 5, 10, 30)})

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert measurement.date.utc.utcoffset() == timedelta(0)
        assert measurement.date.utc.hour == 10

    @pytest.mark.parametrize("date", ["yesterday", "", {"local": "2024-01-01T00:00:00"}, 1704067200])
    def test_unparseable_dates_are_dropped(self, normalizer, source, date) -> None:
        assert normalizer.normalize(source=source, result=_result(_record(date=date))) == []


# ---------------------------------------------------------------------------
# Optional attributes
# ---------------------------------------------------------------------------


class TestOptionalAttributes:
    def test_attribution_entries_without_name_are_dropped(self, normalizer, source) -> None:
        raw = _record(attribution=[{"name": "EPA"}, {"url": "https://nameless.example"}, "junk"])

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert measurement.attribution == [{"name": "EPA"}]

    def test_single_attribution_mapping_is_wrapped(self, normalizer, source) -> None:
        raw = _record(attribution={"name": "EPA"})

        assert normalizer.normalize(source=source, result=_result(raw))[0].attribution == [{"name": "EPA"}]

    def test_attribution_keeps_only_json_values(self, normalizer, source) -> None:
        raw = _record(
            attribution=[
                {
                    "name": "EPA",
                    "url": "https://epa.example",
                    "weight": Decimal("0.5"),
                    "retrieved": datetime(2024, 1, 1, tzinfo=timezone.utc),
                    "score": float("nan"),
                    "tags": ["a"],
                    3: "numeric key",
                    "verified": True,
                }
            ]
        )

        measurement = normalizer.normalize(source=source, result=_result(raw))[0]

        assert measurement.attribution == [{"name": "EPA", "url": "https://epa.example", "verified": True}]
        json.dumps(measurement.attribution, allow_nan=False)

    def test_averaging_period_requires_numeric_value(self, normalizer, source) -> None:
        good = _record(averagingPeriod={"value": 1, "unit": "hours", "extra": "x"})
        bad = _record(parameter="o3", averagingPeriod={"value": "1", "unit": "hours"})

        first, second = normalizer.normalize(source=source, result=_result(good, bad))

        assert first.averaging_period == {"value": 1, "unit": "hours"}
        assert second.averaging_period is None

    def test_out_of_range_coordinates_are_dropped(self, normalizer, source) -> None:
        good = _record(coordinates={"latitude": 39.9, "longitude": 116.4})
        bad = _record(parameter="o3", coordinates={"latitude": 120, "longitude": 0})

        first, second = normalizer.normalize(source=source, result=_result(good, bad))

        assert first.coordinates == {"latitude": 39.9, "longitude": 116.4}
        assert second.coordinates is None


def test_dedup_key_uses_location_parameter_and_utc_date(normalizer, source) -> None:
    measurement: Measurement = normalizer.normalize(source=source, result=_result(_record()))[0]

    assert measurement.dedup_key == ("Station 1", "pm25", datetime(2024, 1, 1, tzinfo=timezone.utc))
