"""chat-rbac settings (conventional Pydantic v2)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

# ---- Defaults ---------------------------------------------------------------

DEFAULT_STORAGE_ROOT = Path("./data")
DEFAULT_DB_FILENAME = "chat_rbac.sqlite"
DEFAULT_SQLITE_PATH = DEFAULT_STORAGE_ROOT / "db" / DEFAULT_DB_FILENAME
DEFAULT_BASELINE_ROLE_NAME = "@everyone"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


# ---- Settings ---------------------------------------------------------------

class Settings(BaseSettings):
    """Library settings loaded from CHAT_RBAC_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHAT_RBAC_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Core
    app_name: str = "chat-rbac"
    logging_level: str = "INFO"

    # Database
    database_url: str | None = None
    database_echo: bool = False
    database_sqlite_busy_timeout_ms: int = Field(30_000, gt=0)

    # Roles
    baseline_role_name: str = DEFAULT_BASELINE_ROLE_NAME
    baseline_seed_defaults: bool = False

    # Audit
    audit_enabled: bool = True

    # ---- Validators ----

    @field_validator("logging_level", mode="before")
    @classmethod
    def _v_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v).strip()).upper()
        if s and s not in _LOG_LEVELS:
            raise ValueError(f"CHAT_RBAC_LOGGING_LEVEL must be one of {sorted(_LOG_LEVELS)}")
        return s or "INFO"

    @field_validator("baseline_role_name", mode="before")
    @classmethod
    def _v_baseline_name(cls, v: Any) -> str:
        s = "" if v is None else str(v).strip()
        return s or DEFAULT_BASELINE_ROLE_NAME

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        if not self.database_url:
            sqlite = DEFAULT_SQLITE_PATH.expanduser().resolve()
            self.database_url = f"sqlite+aiosqlite:///{sqlite.as_posix()}"

        url = make_url(self.database_url)
        if url.get_backend_name() == "sqlite" and url.drivername != "sqlite+aiosqlite":
            url = url.set(drivername="sqlite+aiosqlite")
        self.database_url = url.render_as_string(hide_password=False)
        return self


@lru_cache(maxsize=1)
def _build_settings() -> Settings:
    return Settings()


def get_settings() -> Settings:
    return _build_settings()


def reload_settings() -> Settings:
    _build_settings.cache_clear()
    return _build_settings()


__all__ = [
    "DEFAULT_BASELINE_ROLE_NAME",
    "DEFAULT_SQLITE_PATH",
    "Settings",
    "get_settings",
    "reload_settings",
]
