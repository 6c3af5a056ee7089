"""Append-only log of permission mutations."""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from chat_rbac.db import Base, CreatedAtMixin, UUIDPrimaryKeyMixin, UUIDType, enum_values


class AuditAction(str, Enum):
    ROLE_CREATED = "ROLE_CREATED"
    ROLE_DELETED = "ROLE_DELETED"
    ROLE_GRANTS_REPLACED = "ROLE_GRANTS_REPLACED"
    ROLES_REORDERED = "ROLES_REORDERED"
    ROLE_ASSIGNED = "ROLE_ASSIGNED"
    ROLE_REVOKED = "ROLE_REVOKED"
    OVERRIDE_SET = "OVERRIDE_SET"
    OVERRIDE_CLEARED = "OVERRIDE_CLEARED"


class AuditTargetType(str, Enum):
    ROLE = "ROLE"
    MEMBER = "MEMBER"
    SERVER = "SERVER"


class PermissionAuditLog(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "permission_audit_logs"

    # No foreign keys: history outlives the rows it describes.
    server_id: Mapped[UUID] = mapped_column(UUIDType(), nullable=False)
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(
            AuditAction,
            name="audit_action",
            native_enum=False,
            length=40,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    target_type: Mapped[AuditTargetType] = mapped_column(
        SAEnum(
            AuditTargetType,
            name="audit_target_type",
            native_enum=False,
            length=20,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    permission: Mapped[str | None] = mapped_column(String(64), nullable=True)
    performed_by: Mapped[UUID | None] = mapped_column(UUIDType(), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    old_value: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Any | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (Index("permission_audit_logs_server_created_idx", "server_id", "created_at"),)


__all__ = ["AuditAction", "AuditTargetType", "PermissionAuditLog"]
