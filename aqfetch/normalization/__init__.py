"""
Normalization layer exports.
"""

from aqfetch.normalization.measurement_normalizer import MeasurementNormalizer

__all__ = ["MeasurementNormalizer"]
