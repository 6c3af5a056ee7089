"""Role, grant, assignment and override models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_rbac.core.rbac.types import GrantType, PermissionScope, PermissionType
from chat_rbac.db import (
    Base,
    CreatedAtMixin,
    TimestampMixin,
    UTCDateTime,
    UUIDPrimaryKeyMixin,
    UUIDType,
    enum_values,
)

from .server import Member, Server

permission_enum = SAEnum(
    PermissionType,
    name="permission_type",
    native_enum=False,
    length=40,
    values_callable=enum_values,
)

grant_type_enum = SAEnum(
    GrantType,
    name="grant_type",
    native_enum=False,
    length=10,
    values_callable=enum_values,
)

scope_enum = SAEnum(
    PermissionScope,
    name="permission_scope",
    native_enum=False,
    length=20,
    values_callable=enum_values,
)

_SCOPE_TARGET_CHECK = (
    "(scope = 'SERVER' AND target_id IS NULL) OR (scope <> 'SERVER' AND target_id IS NOT NULL)"
)


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Server-scoped role; higher ``position`` means more authority."""

    __tablename__ = "roles"

    server_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("servers.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#99AAB5")
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    hoisted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    mentionable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_baseline: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    server: Mapped[Server] = relationship("Server")
    grants: Mapped[list[RoleGrant]] = relationship(
        "RoleGrant",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RoleGrant.ordinal",
    )
    assignments: Mapped[list[MemberRoleAssignment]] = relationship(
        "MemberRoleAssignment",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (UniqueConstraint("server_id", "position"),)


class RoleGrant(UUIDPrimaryKeyMixin, Base):
    """One ordered ALLOW/DENY entry of a role."""

    __tablename__ = "role_grants"

    role_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    permission: Mapped[PermissionType] = mapped_column(permission_enum, nullable=False)
    grant_type: Mapped[GrantType] = mapped_column(grant_type_enum, nullable=False)
    scope: Mapped[PermissionScope] = mapped_column(
        scope_enum, nullable=False, default=PermissionScope.SERVER
    )
    target_id: Mapped[UUID | None] = mapped_column(UUIDType(), nullable=True)

    role: Mapped[Role] = relationship("Role", back_populates="grants")

    __table_args__ = (CheckConstraint(_SCOPE_TARGET_CHECK, name="scope_target"),)


class MemberRoleAssignment(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    __tablename__ = "member_role_assignments"

    member_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    role_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    assigned_by: Mapped[UUID | None] = mapped_column(UUIDType(), nullable=True)

    member: Mapped[Member] = relationship("Member")
    role: Mapped[Role] = relationship("Role", back_populates="assignments")

    __table_args__ = (UniqueConstraint("member_id", "role_id"),)


class MemberOverride(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Member-specific ALLOW/DENY, optionally expiring.

    ``target_key`` mirrors ``target_id`` with ``""`` for SERVER scope so the
    unique key also holds on backends that treat NULLs as distinct.
    """

    __tablename__ = "member_overrides"

    member_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    permission: Mapped[PermissionType] = mapped_column(permission_enum, nullable=False)
    grant_type: Mapped[GrantType] = mapped_column(grant_type_enum, nullable=False)
    scope: Mapped[PermissionScope] = mapped_column(
        scope_enum, nullable=False, default=PermissionScope.SERVER
    )
    target_id: Mapped[UUID | None] = mapped_column(UUIDType(), nullable=True)
    target_key: Mapped[str] = mapped_column(String(36), nullable=False, default="")
    assigned_by: Mapped[UUID | None] = mapped_column(UUIDType(), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    member: Mapped[Member] = relationship("Member")

    __table_args__ = (
        UniqueConstraint("member_id", "permission", "scope", "target_key"),
        CheckConstraint(_SCOPE_TARGET_CHECK, name="scope_target"),
    )


__all__ = [
    "MemberOverride",
    "MemberRoleAssignment",
    "Role",
    "RoleGrant",
]
