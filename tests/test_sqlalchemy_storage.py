from __future__ import annotations

import unittest
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.schema import CreateTable

from aqfetch.domain.measurement import Measurement, MeasurementDate
from aqfetch.errors import SchemaInitializationError
from aqfetch.storage.sqlalchemy_storage import SQLAlchemyMeasurementStorage
from db.models.measurement import DEDUPE_INDEX_NAME, MeasurementRecord


def _engine_with_ddl(side_effect=None) -> tuple[MagicMock, MagicMock]:
    connection = MagicMock()
    connection._run_ddl_visitor.side_effect = side_effect
    engine = MagicMock()
    engine.begin.return_value.__enter__.return_value = connection
    return engine, connection


def _failing_for(*names: str):
    def _run_ddl_visitor(visitor, element, **kwargs):
        if element.name in names:
            raise ProgrammingError("CREATE", {}, Exception(f"cannot create {element.name}"))

    return _run_ddl_visitor


def _measurement() -> Measurement:
    return Measurement(
        date=MeasurementDate(utc=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        parameter="pm25",
        location="Station 1",
        value=12.0,
        unit="µg/m3",
        city="Metropolis",
        country="US",
        source_name="X",
    )


class TestEnsureSchema(unittest.TestCase):
    def test_creates_bare_table_then_every_index_with_dedup_first(self) -> None:
        engine, connection = _engine_with_ddl()

        SQLAlchemyMeasurementStorage(engine=engine).ensure_schema()

        (statement,) = [call.args[0] for call in connection.execute.call_args_list]
        self.assertIsInstance(statement, CreateTable)
        self.assertIs(statement.element, MeasurementRecord.__table__)
        created = [call.args[1].name for call in connection._run_ddl_visitor.call_args_list]
        self.assertEqual(created[0], DEDUPE_INDEX_NAME)
        self.assertEqual(
            set(created[1:]),
            {
                "ix_measurements_city",
                "ix_measurements_date_utc",
                "ix_measurements_city_location",
                "ix_measurements_country",
                "ix_measurements_country_date_utc",
                "ix_measurements_location_date_utc",
            },
        )
        for call in connection._run_ddl_visitor.call_args_list:
            self.assertTrue(call.kwargs["checkfirst"])

    def test_table_statement_is_idempotent_and_has_no_indexes(self) -> None:
        ddl = str(CreateTable(MeasurementRecord.__table__, if_not_exists=True).compile(dialect=postgresql.dialect()))

        self.assertIn("CREATE TABLE IF NOT EXISTS measurements", ddl)
        self.assertNotIn("INDEX", ddl)

    def test_table_failure_is_fatal(self) -> None:
        engine, connection = _engine_with_ddl()
        connection.execute.side_effect = ProgrammingError("CREATE", {}, Exception("permission denied"))

        with self.assertRaises(SchemaInitializationError):
            SQLAlchemyMeasurementStorage(engine=engine).ensure_schema()

        connection._run_ddl_visitor.assert_not_called()

    def test_dedup_index_failure_is_fatal(self) -> None:
        engine, connection = _engine_with_ddl(_failing_for(DEDUPE_INDEX_NAME))

        with self.assertRaises(SchemaInitializationError) as ctx:
            SQLAlchemyMeasurementStorage(engine=engine).ensure_schema()

        self.assertIn(DEDUPE_INDEX_NAME, str(ctx.exception))
        self.assertEqual(connection._run_ddl_visitor.call_count, 1)

    def test_secondary_index_failure_on_fresh_table_is_logged_only(self) -> None:
        engine, connection = _engine_with_ddl(_failing_for("ix_measurements_city"))

        with self.assertLogs("aqfetch.storage.sqlalchemy_storage", level="WARNING") as logs:
            SQLAlchemyMeasurementStorage(engine=engine).ensure_schema()

        connection.execute.assert_called_once()
        self.assertEqual(connection._run_ddl_visitor.call_count, len(MeasurementRecord.__table__.indexes))
        self.assertTrue(any("secondary_index_failed" in line for line in logs.output))

    def test_unreachable_database_is_fatal(self) -> None:
        engine = MagicMock()
        engine.begin.side_effect = OperationalError("connect", {}, Exception("connection refused"))

        with self.assertRaises(SchemaInitializationError):
            SQLAlchemyMeasurementStorage(engine=engine).ensure_schema()


class TestWriteBatch(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = MagicMock()
        self.session = self.session_factory.return_value.__enter__.return_value
        self.storage = SQLAlchemyMeasurementStorage(
            engine=MagicMock(),
            session_factory=self.session_factory,
            batch_size=500,
        )

    def test_commits_and_returns_inserted_count(self) -> None:
        self.session.scalars.return_value.all.return_value = [uuid.uuid4()]

        inserted = self.storage.write_batch("X", [_measurement()])

        self.assertEqual(inserted, 1)
        self.session.commit.assert_called_once_with()
        self.session.rollback.assert_not_called()

    def test_empty_batch_opens_no_session(self) -> None:
        self.assertEqual(self.storage.write_batch("X", []), 0)
        self.session_factory.assert_not_called()

    def test_database_error_rolls_back_and_propagates(self) -> None:
        self.session.scalars.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))

        with self.assertRaises(OperationalError):
            self.storage.write_batch("X", [_measurement()])

        self.session.rollback.assert_called_once_with()
        self.session.commit.assert_not_called()


if __name__ == "__main__":
    unittest.main()
