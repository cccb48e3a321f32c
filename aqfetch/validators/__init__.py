"""
aqfetch/validators package marker.
"""

from aqfetch.validators.fetch_result_validator import RawFetchResult, validate_fetch_result

__all__ = ["RawFetchResult", "validate_fetch_result"]
