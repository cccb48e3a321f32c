"""
aqfetch/repositories package marker.
"""

from aqfetch.repositories.measurement_repository import MeasurementRepository

__all__ = ["MeasurementRepository"]
