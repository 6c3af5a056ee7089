"""Database column types shared across chat-rbac models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy.types import CHAR, DateTime, TypeDecorator

from chat_rbac.common.clock import ensure_utc

__all__ = ["UUIDType", "UTCDateTime"]


class UUIDType(TypeDecorator):
    """Platform-agnostic UUID storage.

    Uses the native UUID type on PostgreSQL and a 36-character string
    elsewhere. Values always come back to Python as ``uuid.UUID``.
    """

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect: Any):
        if dialect.name in {"postgresql", "postgres"}:
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value: Any, dialect: Any):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(str(value)))

    def process_result_value(self, value: Any, dialect: Any):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    @property
    def python_type(self) -> type[uuid.UUID]:
        return uuid.UUID


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that normalizes values to UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any):
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value

    def process_result_value(self, value: Any, dialect: Any):
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value
