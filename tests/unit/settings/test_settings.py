from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from chat_rbac.settings import DEFAULT_SQLITE_PATH, Settings, get_settings, reload_settings


def test_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = reload_settings()

    assert settings.app_name == "chat-rbac"
    assert settings.logging_level == "INFO"
    assert settings.baseline_role_name == "@everyone"
    assert settings.baseline_seed_defaults is False
    assert settings.audit_enabled is True
    expected = DEFAULT_SQLITE_PATH.expanduser().resolve().as_posix()
    assert settings.database_url == f"sqlite+aiosqlite:///{expected}"


def test_settings_reads_from_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Values stored in a local .env file should be honoured."""

    (tmp_path / ".env").write_text(
        """
CHAT_RBAC_APP_NAME=rbac-test
CHAT_RBAC_BASELINE_ROLE_NAME=members
CHAT_RBAC_BASELINE_SEED_DEFAULTS=true
"""
    )
    monkeypatch.chdir(tmp_path)
    reload_settings()

    settings = get_settings()

    assert settings.app_name == "rbac-test"
    assert settings.baseline_role_name == "members"
    assert settings.baseline_seed_defaults is True


def test_env_var_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHAT_RBAC_LOGGING_LEVEL", "debug")
    monkeypatch.setenv("CHAT_RBAC_AUDIT_ENABLED", "false")
    reload_settings()

    settings = get_settings()

    assert settings.logging_level == "DEBUG"
    assert settings.audit_enabled is False


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()


def test_sqlite_urls_use_async_driver() -> None:
    settings = Settings(database_url="sqlite:///./somewhere/db.sqlite")

    assert settings.database_url.startswith("sqlite+aiosqlite:///")


def test_blank_baseline_name_falls_back_to_default() -> None:
    assert Settings(baseline_role_name="   ").baseline_role_name == "@everyone"


def test_invalid_logging_level_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(logging_level="LOUD")
