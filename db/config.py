"""
db/config.py

Database and `.env` configuration shared by the fetcher and Alembic.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_DATABASE_URL = "postgresql+psycopg://localhost:5432/openaq"
PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILENAMES = (".env", ".env.local")

_DRIVER_PREFIXES = ("postgres://", "postgresql://")
_PSYCOPG_PREFIX = "postgresql+psycopg://"


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Export `KEY=VALUE` lines from `.env` then `.env.local` under `root`.

    Variables already in the process environment win over both files, and
    `.env` wins over `.env.local`. Lines may start with `export `; values may
    be quoted.
    """

    for filename in ENV_FILENAMES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for line in env_path.read_text(encoding="utf-8").splitlines():
            entry = _parse_env_line(line)
            if entry is not None:
                os.environ.setdefault(*entry)


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if not line or line.startswith("#"):
        return None

    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def normalize_postgres_url(url: str) -> str:
    """
    Point bare PostgreSQL URLs at the psycopg 3 driver SQLAlchemy should use.
    """

    for prefix in _DRIVER_PREFIXES:
        if url.startswith(prefix):
            return _PSYCOPG_PREFIX + url[len(prefix) :]
    return url


def resolve_database_url() -> str:
    """
    Resolve the measurement store URL.

    Priority:
    1) DATABASE_URL
    2) CLOUD_DATABASE_URL when ENVIRONMENT is cloud-like
    3) LOCAL_DATABASE_URL
    4) DEFAULT_DATABASE_URL (local PostgreSQL, `openaq` database)
    """

    load_env_files()

    direct_url = os.getenv("DATABASE_URL", "").strip()
    if direct_url:
        return normalize_postgres_url(direct_url)

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    cloud_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
    if environment in {"prod", "production", "staging", "cloud"} and cloud_url:
        return normalize_postgres_url(cloud_url)

    local_url = os.getenv("LOCAL_DATABASE_URL", "").strip()
    if local_url:
        return normalize_postgres_url(local_url)

    return DEFAULT_DATABASE_URL
