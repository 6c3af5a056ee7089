"""Database engine + session factory.

Standard behavior:
- One engine per process (created at startup)
- One session per request (FastAPI dependency)
- Commit on success, rollback on exception
- SQLite: foreign keys on, WAL + busy_timeout, StaticPool for in-memory URLs
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from chat_rbac.settings import Settings

from .base import Base

__all__ = [
    "DatabaseConfig",
    "Database",
    "db",
    "session_scope",
    "get_db_session",
    "build_async_url",
    "create_schema",
    "drop_schema",
]

_DEFAULT_URL = "sqlite+aiosqlite:///./data/db/chat_rbac.sqlite"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Minimal DB config.

    Provide any SQLAlchemy URL in ``url``; SQLite URLs are switched to the
    ``aiosqlite`` driver at runtime.
    """

    url: str

    echo: bool = False

    # SQLite tuning
    sqlite_journal_mode: str = "WAL"
    sqlite_synchronous: str = "NORMAL"
    sqlite_busy_timeout_ms: int = 30_000

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseConfig:
        """Load config from Settings (which reads .env natively)."""
        return cls(
            url=settings.database_url or _DEFAULT_URL,
            echo=bool(settings.database_echo),
            sqlite_busy_timeout_ms=int(settings.database_sqlite_busy_timeout_ms),
        )


# ---- URL helpers ------------------------------------------------------------

def _is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def _is_sqlite_memory(url: URL) -> bool:
    db = (url.database or "").strip()
    if not db or db == ":memory:":
        return True
    if db.startswith("file:") and (url.query or {}).get("mode") == "memory":
        return True
    return False


def _ensure_sqlite_parent_dir(url: URL) -> None:
    db = (url.database or "").strip()
    if not db or db == ":memory:" or db.startswith("file:"):
        return
    path = Path(db)
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)


def build_async_url(cfg: DatabaseConfig) -> str:
    """Return the *async* SQLAlchemy URL string (for runtime)."""
    url = make_url(cfg.url)
    if _is_sqlite(url):
        url = url.set(drivername="sqlite+aiosqlite")
    return url.render_as_string(hide_password=False)


def _build_engine_kwargs(url: URL, cfg: DatabaseConfig) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": cfg.echo}
    if _is_sqlite(url):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": cfg.sqlite_busy_timeout_ms / 1000.0,
        }
        if _is_sqlite_memory(url):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


# ---- Database object --------------------------------------------------------

class Database:
    """Holds the process-wide engine + sessionmaker.

    Call `init(cfg)` once on startup.
    Call `await dispose()` on shutdown.
    """

    def __init__(self) -> None:
        self._cfg: DatabaseConfig | None = None
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call db.init(...) at startup.")
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call db.init(...) at startup.")
        return self._sessionmaker

    @property
    def config(self) -> DatabaseConfig:
        if self._cfg is None:
            raise RuntimeError("Database not initialized.")
        return self._cfg

    def init(self, cfg: DatabaseConfig) -> None:
        """Create engine + sessionmaker (idempotent for identical config)."""
        if self._cfg == cfg and self._engine is not None and self._sessionmaker is not None:
            return

        self._cfg = cfg

        async_url = build_async_url(cfg)
        url_obj = make_url(async_url)
        sqlite = _is_sqlite(url_obj)
        if sqlite:
            _ensure_sqlite_parent_dir(url_obj)

        engine = create_async_engine(async_url, **_build_engine_kwargs(url_obj, cfg))

        if sqlite:
            jm = cfg.sqlite_journal_mode
            sync = cfg.sqlite_synchronous
            busy_ms = int(cfg.sqlite_busy_timeout_ms)

            @event.listens_for(engine.sync_engine, "connect")
            def _sqlite_on_connect(dbapi_conn, _):
                cur = dbapi_conn.cursor()
                try:
                    cur.execute("PRAGMA foreign_keys=ON")
                    cur.execute(f"PRAGMA busy_timeout={busy_ms}")
                    cur.execute(f"PRAGMA journal_mode={jm}")
                    cur.execute(f"PRAGMA synchronous={sync}")
                finally:
                    cur.close()

        self._engine = engine
        self._sessionmaker = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def dispose(self) -> None:
        """Dispose engine (call on shutdown)."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        self._cfg = None


db = Database()


async def create_schema(engine: AsyncEngine) -> None:
    """Create every chat-rbac table that does not exist yet."""
    import chat_rbac.models  # noqa: F401  (registers mappers)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    import chat_rbac.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def close_session(session: AsyncSession) -> None:
    await asyncio.shield(session.close())


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for scripts and the CLI; commits on success, rolls back on error."""
    session = db.sessionmaker()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await close_session(session)


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one AsyncSession per request."""
    session = db.sessionmaker()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await close_session(session)
