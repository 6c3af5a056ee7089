from __future__ import annotations

from collections.abc import Iterator

import pytest

from chat_rbac.settings import reload_settings


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure settings cache and env overrides are cleared between tests."""

    for var in (
        "CHAT_RBAC_APP_NAME",
        "CHAT_RBAC_LOGGING_LEVEL",
        "CHAT_RBAC_DATABASE_URL",
        "CHAT_RBAC_DATABASE_ECHO",
        "CHAT_RBAC_DATABASE_SQLITE_BUSY_TIMEOUT_MS",
        "CHAT_RBAC_BASELINE_ROLE_NAME",
        "CHAT_RBAC_BASELINE_SEED_DEFAULTS",
        "CHAT_RBAC_AUDIT_ENABLED",
    ):
        monkeypatch.delenv(var, raising=False)
    reload_settings()
    yield
    monkeypatch.undo()
    reload_settings()
