"""DB package exports."""

from .base import (
    NAMING_CONVENTION,
    Base,
    CreatedAtMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    metadata,
    utc_now,
)
from .database import (
    Database,
    DatabaseConfig,
    build_async_url,
    create_schema,
    db,
    drop_schema,
    get_db_session,
    session_scope,
)
from .enums import enum_values
from .types import UTCDateTime, UUIDType

__all__ = [
    "Base",
    "metadata",
    "NAMING_CONVENTION",
    "utc_now",
    "UUIDPrimaryKeyMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "UUIDType",
    "UTCDateTime",
    "enum_values",
    "Database",
    "DatabaseConfig",
    "db",
    "session_scope",
    "get_db_session",
    "build_async_url",
    "create_schema",
    "drop_schema",
]
