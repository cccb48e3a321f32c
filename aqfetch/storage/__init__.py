"""
Storage layer exports.
"""

from aqfetch.storage.base import MeasurementStorage
from aqfetch.storage.sqlalchemy_storage import SQLAlchemyMeasurementStorage

__all__ = ["MeasurementStorage", "SQLAlchemyMeasurementStorage"]
