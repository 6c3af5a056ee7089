from __future__ import annotations

import os
from pathlib import Path

os.environ.setdefault("CHAT_RBAC_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest


def pytest_collection_modifyitems(config, items) -> None:
    for item in items:
        path = Path(str(item.fspath))
        path_str = str(path)
        if "/tests/integration/" in path_str:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path_str:
            item.add_marker(pytest.mark.unit)
