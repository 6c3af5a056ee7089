"""Identifier helpers for chat-rbac."""

from __future__ import annotations

import uuid
from typing import Any

__all__ = ["IdLike", "parse_uuid"]

IdLike = uuid.UUID | str


def parse_uuid(value: Any) -> uuid.UUID | None:
    """Return ``value`` as a UUID, or ``None`` when it is not one."""

    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None
