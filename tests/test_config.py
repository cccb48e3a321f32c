from __future__ import annotations

import os
from pathlib import Path

import pytest

from aqfetch import config
from db.config import DEFAULT_DATABASE_URL, load_env_files, normalize_postgres_url, resolve_database_url

_FETCH_VARS = (
    "SOURCES_PATH",
    "FETCH_INTERVAL_SECONDS",
    "FETCH_TASK_TIMEOUT_SECONDS",
    "FETCH_NOTIFICATIONS_ENABLED",
    "STORAGE_BATCH_SIZE",
    "FETCH_EXTRA_ADAPTERS",
)
_DB_VARS = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _FETCH_VARS + _DB_VARS + ("WEBHOOK_URL", "WEBHOOK_KEY"):
        monkeypatch.delenv(name, raising=False)
    config.get_fetch_settings.cache_clear()
    config.get_webhook_settings.cache_clear()
    yield
    config.get_fetch_settings.cache_clear()
    config.get_webhook_settings.cache_clear()


class TestFetchSettings:
    def test_defaults(self) -> None:
        settings = config.get_fetch_settings()

        assert settings.fetch_interval_seconds == 600
        assert settings.task_timeout_seconds is None
        assert settings.notifications_enabled is True
        assert settings.extra_adapters == ()
        assert Path(settings.sources_path) == Path(config.__file__).resolve().parents[1] / "sources"

    def test_environment_overrides(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("SOURCES_PATH", str(tmp_path))
        monkeypatch.setenv("FETCH_INTERVAL_SECONDS", "60")
        monkeypatch.setenv("FETCH_TASK_TIMEOUT_SECONDS", "90")
        monkeypatch.setenv("FETCH_NOTIFICATIONS_ENABLED", "false")
        monkeypatch.setenv("FETCH_EXTRA_ADAPTERS", "pkg.a:One, ,pkg.b:Two")

        settings = config.get_fetch_settings()

        assert settings.sources_path == str(tmp_path)
        assert settings.fetch_interval_seconds == 60
        assert settings.task_timeout_seconds == 90.0
        assert settings.notifications_enabled is False
        assert settings.extra_adapters == ("pkg.a:One", "pkg.b:Two")

    @pytest.mark.parametrize("raw", ["", "abc", "0", "-5"])
    def test_invalid_timeout_means_unbounded(self, monkeypatch, raw) -> None:
        monkeypatch.setenv("FETCH_TASK_TIMEOUT_SECONDS", raw)

        assert config.get_fetch_settings().task_timeout_seconds is None

    def test_invalid_interval_falls_back_to_default(self, monkeypatch) -> None:
        monkeypatch.setenv("FETCH_INTERVAL_SECONDS", "ten minutes")

        assert config.get_fetch_settings().fetch_interval_seconds == 600


def test_webhook_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("WEBHOOK_URL", "https://api.example.org/v1/webhooks")
    monkeypatch.setenv("WEBHOOK_KEY", "s3cret")

    settings = config.get_webhook_settings()

    assert settings.url == "https://api.example.org/v1/webhooks"
    assert settings.key == "s3cret"


class TestDatabaseURL:
    def test_default_is_local_postgres(self) -> None:
        assert resolve_database_url() == DEFAULT_DATABASE_URL

    def test_database_url_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/openaq")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://localhost/other")

        assert resolve_database_url() == "postgresql+psycopg://u:p@db:5432/openaq"

    def test_cloud_url_only_in_cloud_environments(self, monkeypatch) -> None:
        monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/openaq")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/openaq")

        assert resolve_database_url() == "postgresql+psycopg://local/openaq"

        monkeypatch.setenv("ENVIRONMENT", "production")
        assert resolve_database_url() == "postgresql+psycopg://cloud/openaq"

    def test_normalize_leaves_driver_urls_alone(self) -> None:
        assert normalize_postgres_url("postgresql+psycopg://h/db") == "postgresql+psycopg://h/db"


class TestEnvFiles:
    @pytest.fixture(autouse=True)
    def scratch_environ(self, monkeypatch):
        monkeypatch.setattr(os, "environ", dict(os.environ))

    def test_exports_pairs_without_overriding_environment(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("WEBHOOK_KEY", "from-process")
        (tmp_path / ".env").write_text(
            "# local settings\n"
            "export DATABASE_URL=postgres://u:p@db/openaq\n"
            'WEBHOOK_URL="https://api.example.org/v1/webhooks"\n'
            "WEBHOOK_KEY=from-file\n"
            "not a pair\n"
            "=orphan\n",
            encoding="utf-8",
        )

        load_env_files(tmp_path)

        assert resolve_database_url() == "postgresql+psycopg://u:p@db/openaq"
        assert os.environ["WEBHOOK_URL"] == "https://api.example.org/v1/webhooks"
        assert os.environ["WEBHOOK_KEY"] == "from-process"

    def test_dotenv_wins_over_dotenv_local(self, monkeypatch, tmp_path) -> None:
        (tmp_path / ".env").write_text("ENVIRONMENT=production\n", encoding="utf-8")
        (tmp_path / ".env.local").write_text("ENVIRONMENT=local\nLOCAL_DATABASE_URL='postgresql://local/openaq'\n", encoding="utf-8")

        load_env_files(tmp_path)

        assert os.environ["ENVIRONMENT"] == "production"
        assert os.environ["LOCAL_DATABASE_URL"] == "postgresql://local/openaq"

    def test_missing_files_are_ignored(self, tmp_path) -> None:
        load_env_files(tmp_path)

        assert "DATABASE_URL" not in os.environ
