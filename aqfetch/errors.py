"""
Exceptions raised across the fetch pipeline.
"""

from __future__ import annotations


class FetchError(Exception):
    """Base exception for fetch pipeline failures."""


class SourceConfigError(FetchError):
    """Raised when source configuration cannot be loaded or is inconsistent."""


class AdapterError(FetchError):
    """Raised by an adapter when its upstream cannot be fetched or parsed."""


class AdapterNotFoundError(FetchError):
    """Raised when a source names an adapter that is not registered."""

    def __init__(self, adapter_name: str) -> None:
        super().__init__(f"Could not find adapter '{adapter_name}'.")
        self.adapter_name = adapter_name


class InvalidFetchResultError(FetchError):
    """Raised when adapter output fails the structural check."""


class SchemaInitializationError(FetchError):
    """Raised when the measurement store schema cannot be established."""


class NotificationError(FetchError):
    """Raised by a notification channel when delivery fails."""
