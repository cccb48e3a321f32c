"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.measurement import DEDUPE_COLUMNS, DEDUPE_INDEX_NAME, MeasurementRecord

__all__ = [
    "DEDUPE_COLUMNS",
    "DEDUPE_INDEX_NAME",
    "MeasurementRecord",
]
