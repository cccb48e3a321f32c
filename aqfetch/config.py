"""
aqfetch/config.py

Process configuration for the fetch pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

DEFAULT_WEBHOOK_URL = "http://localhost:3004/v1/webhooks"
DEFAULT_WEBHOOK_KEY = "123"
DEFAULT_FETCH_INTERVAL_SECONDS = 10 * 60


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_optional_float_env(name: str) -> float | None:
    """
    Read an optional positive float; blank, invalid or non-positive values mean unset.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        parsed = float(raw_value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str) -> tuple[str, ...]:
    """
    Read a comma-separated list; blank items are dropped.
    """

    _load_env_once()
    raw_value = os.getenv(name) or ""
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _resolve_path(raw_path: str) -> Path:
    candidate = Path(raw_path)
    if candidate.is_absolute():
        return candidate
    return (_project_root() / candidate).resolve()


@dataclass(frozen=True)
class FetchSettings:
    """
    Cycle-level settings for the fetch pipeline.
    """

    sources_path: str
    fetch_interval_seconds: int = DEFAULT_FETCH_INTERVAL_SECONDS
    task_timeout_seconds: float | None = None
    notifications_enabled: bool = True
    storage_batch_size: int = 1000
    extra_adapters: tuple[str, ...] = ()


@dataclass(frozen=True)
class WebhookSettings:
    """
    Completion webhook settings.
    """

    url: str = DEFAULT_WEBHOOK_URL
    key: str = DEFAULT_WEBHOOK_KEY
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class MailSettings:
    """
    SMTP settings for failure e-mails.
    """

    host: str = "localhost"
    port: int = 25
    username: str | None = None
    password: str | None = None
    use_tls: bool = False
    sender: str = "aqfetch@localhost"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for source adapters.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0
    user_agent: str = "aqfetch/1.0"


@lru_cache(maxsize=1)
def get_fetch_settings() -> FetchSettings:
    """
    Return cached cycle settings from environment variables.
    """

    return FetchSettings(
        sources_path=str(_resolve_path(_get_str_env("SOURCES_PATH", "sources"))),
        fetch_interval_seconds=max(
            1,
            _get_int_env("FETCH_INTERVAL_SECONDS", DEFAULT_FETCH_INTERVAL_SECONDS),
        ),
        task_timeout_seconds=_get_optional_float_env("FETCH_TASK_TIMEOUT_SECONDS"),
        notifications_enabled=_get_bool_env("FETCH_NOTIFICATIONS_ENABLED", True),
        storage_batch_size=max(1, _get_int_env("STORAGE_BATCH_SIZE", 1000)),
        extra_adapters=_get_list_env("FETCH_EXTRA_ADAPTERS"),
    )


@lru_cache(maxsize=1)
def get_webhook_settings() -> WebhookSettings:
    """
    Return cached webhook settings from environment variables.
    """

    return WebhookSettings(
        url=_get_str_env("WEBHOOK_URL", DEFAULT_WEBHOOK_URL),
        key=_get_str_env("WEBHOOK_KEY", DEFAULT_WEBHOOK_KEY),
        timeout_seconds=max(1.0, _get_float_env("WEBHOOK_TIMEOUT_SECONDS", 10.0)),
    )


@lru_cache(maxsize=1)
def get_mail_settings() -> MailSettings:
    """
    Return cached SMTP settings from environment variables.
    """

    return MailSettings(
        host=_get_str_env("SMTP_HOST", "localhost"),
        port=_get_int_env("SMTP_PORT", 25),
        username=_get_optional_str_env("SMTP_USERNAME"),
        password=_get_optional_str_env("SMTP_PASSWORD"),
        use_tls=_get_bool_env("SMTP_USE_TLS", False),
        sender=_get_str_env("MAIL_FROM", "aqfetch@localhost"),
        timeout_seconds=max(1.0, _get_float_env("SMTP_TIMEOUT_SECONDS", 10.0)),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared adapter HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
        user_agent=_get_str_env("EXTERNAL_HTTP_USER_AGENT", "aqfetch/1.0"),
    )
