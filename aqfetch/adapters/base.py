"""
aqfetch/adapters/base.py

Base adapter abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import requests

from aqfetch.config import ExternalHTTPSettings
from aqfetch.domain.source import Source
from aqfetch.errors import AdapterError
from aqfetch.logging_utils import log_event

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class BaseAdapter(ABC):
    """
    Adapter interface for fetching one source's upstream format.

    `fetch_data` returns the raw result document: a mapping with a
    `measurements` list and an optional `name` used as the location label.
    Implementations raise `AdapterError` on failure and must not mutate the
    source. One adapter instance serves every source that names it, possibly
    from several threads at once.
    """

    name: ClassVar[str]

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", http_settings.user_agent)
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0
        self._rate_lock = threading.Lock()

    @abstractmethod
    def fetch_data(self, source: Source) -> dict[str, Any]:
        """
        Fetch the upstream data for `source` and return the raw result.
        """

    def _get_json(
        self,
        source: Source,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self._get(source, url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise AdapterError(f"{source.name}: response from {url} was not valid JSON.") from exc

    def _get(
        self,
        source: Source,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        GET `url` for `source`, retrying timeouts, dropped connections and
        transient upstream statuses with exponential backoff. Any other error
        status fails the fetch straight away.
        """

        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            self._apply_rate_limit()
            try:
                response = self._session.get(url, params=params, headers=headers, timeout=self._timeout_seconds)
            except (requests.Timeout, requests.ConnectionError) as exc:
                failure, cause = type(exc).__name__, exc
            else:
                status = response.status_code
                if status < 400:
                    return response
                if status not in RETRYABLE_STATUS_CODES:
                    log_event(logger, logging.ERROR, "upstream_rejected", source=source.name, status=status, url=url)
                    raise AdapterError(f"{source.name}: upstream returned HTTP {status}.")
                failure, cause = f"HTTP {status}", None

            if attempt == attempts:
                raise AdapterError(
                    f"{source.name}: giving up on {url} after {attempts} attempts ({failure})."
                ) from cause

            delay = self._backoff_delay(attempt)
            log_event(
                logger,
                logging.WARNING,
                "adapter_retry",
                source=source.name,
                attempt=attempt,
                attempts=attempts,
                reason=failure,
                wait_seconds=round(delay, 3),
            )
            time.sleep(delay)

        raise AssertionError("unreachable")

    def _backoff_delay(self, attempt: int) -> float:
        return self._backoff_initial_seconds * self._backoff_multiplier ** (attempt - 1)

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests of this adapter.
        """

        if self._min_request_interval_seconds <= 0:
            return

        with self._rate_lock:
            now = time.monotonic()
            remaining = self._min_request_interval_seconds - (now - self._last_request_monotonic)
            if remaining > 0:
                time.sleep(remaining)
            self._last_request_monotonic = time.monotonic()
