"""Tests for database layer: URL resolution, engine caching and schema creation."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy import inspect

from identity_settings.core import db as db_module
from identity_settings.core.db import (
    DEFAULT_DB_FILENAME,
    _build_sqlite_url,
    _ensure_dir,
    _resolve_database_url,
    _resolve_sql_echo,
    get_engine,
    init_db,
)


@pytest.fixture
def fresh_engine(monkeypatch):
    """Clear the cached engine and dispose whatever the test creates."""
    monkeypatch.setattr(db_module, "_engine", None)
    yield
    if db_module._engine is not None:
        db_module._engine.dispose()


def test_ensure_dir_creates_directory_successfully(tmp_path):
    test_dir = tmp_path / "new_dir"
    assert not test_dir.exists()

    ok, reason = _ensure_dir(test_dir)

    assert ok is True
    assert reason == ""
    assert test_dir.is_dir()


def test_ensure_dir_handles_os_errors(tmp_path):
    with patch.object(Path, "mkdir") as mock_mkdir:
        mock_mkdir.side_effect = PermissionError("Permission denied")

        ok, reason = _ensure_dir(tmp_path / "denied")

    assert ok is False
    assert "Permission denied" in reason


def test_build_sqlite_url_creates_valid_url(tmp_path):
    url = _build_sqlite_url(tmp_path)

    assert url.startswith("sqlite:///")
    assert str(tmp_path) in url
    assert url.endswith(f"/{DEFAULT_DB_FILENAME}")


def test_resolve_database_url_prefers_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://u:p@db:5432/identity")

    assert _resolve_database_url() == "postgresql+psycopg://u:p@db:5432/identity"


def test_resolve_database_url_falls_back_to_sqlite_dir(monkeypatch, tmp_path):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("SETTINGS_DB_DIR", str(tmp_path / "data"))

    url = _resolve_database_url()

    assert url.endswith(f"/data/{DEFAULT_DB_FILENAME}")
    assert (tmp_path / "data").is_dir()


def test_resolve_database_url_exits_when_dir_unusable(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(db_module, "_ensure_dir", lambda path: (False, "directory not writable"))

    with pytest.raises(SystemExit) as exc_info:
        _resolve_database_url()

    assert exc_info.value.code == 1


def test_resolve_sql_echo_defaults_to_false():
    with patch.dict(os.environ, {}, clear=True):
        assert _resolve_sql_echo() is False


def test_resolve_sql_echo_reads_environment_variable():
    with patch.dict(os.environ, {"LOG_SQL_ECHO": "true"}):
        assert _resolve_sql_echo() is True

    with patch.dict(os.environ, {"LOG_SQL_ECHO": "debug"}):
        assert _resolve_sql_echo() == "debug"

    with patch.dict(os.environ, {"LOG_SQL_ECHO": "false"}):
        assert _resolve_sql_echo() is False


def test_get_engine_caches_engine_instance(monkeypatch, tmp_path, fresh_engine):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cache.db'}")

    engine1 = get_engine()
    engine2 = get_engine()

    assert engine1 is engine2
    assert engine1.dialect.name == "sqlite"


def test_init_db_creates_settings_table(monkeypatch, tmp_path, fresh_engine):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'init.db'}")

    init_db()
    # Running twice must not fail or drop anything
    init_db()

    tables = inspect(get_engine()).get_table_names()
    assert "global_settings" in tables


def test_settings_table_columns(engine):
    columns = {c["name"] for c in inspect(engine).get_columns("global_settings")}

    assert columns == {
        "id",
        "maintenance_mode",
        "maintenance_message",
        "max_users_per_organization",
        "max_session_duration",
        "password_min_length",
        "require_mfa",
        "allow_registration",
        "email_verification_required",
        "token_expiration_minutes",
        "audit_log_retention_days",
        "settings",
        "created_at",
        "updated_at",
    }
