"""Server, membership and channel models the permission layer reads."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_rbac.core.rbac.types import LegacyRole
from chat_rbac.db import Base, TimestampMixin, UUIDPrimaryKeyMixin, UUIDType, enum_values

legacy_role_enum = SAEnum(
    LegacyRole,
    name="member_legacy_role",
    native_enum=False,
    length=20,
    values_callable=enum_values,
)


class Server(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A chat server; its owner resolves every permission to ALLOW."""

    __tablename__ = "servers"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_profile_id: Mapped[UUID] = mapped_column(UUIDType(), nullable=False)

    members: Mapped[list[Member]] = relationship(
        "Member",
        back_populates="server",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Member(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Membership of one profile in one server."""

    __tablename__ = "members"

    server_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("servers.id", ondelete="CASCADE"), nullable=False
    )
    profile_id: Mapped[UUID] = mapped_column(UUIDType(), nullable=False)
    legacy_role: Mapped[LegacyRole] = mapped_column(
        legacy_role_enum,
        nullable=False,
        default=LegacyRole.GUEST,
    )

    server: Mapped[Server] = relationship("Server", back_populates="members", lazy="joined")

    __table_args__ = (UniqueConstraint("server_id", "profile_id"),)


class Category(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "categories"

    server_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("servers.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Channel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "channels"

    server_id: Mapped[UUID] = mapped_column(
        UUIDType(), ForeignKey("servers.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[UUID | None] = mapped_column(
        UUIDType(), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)


__all__ = ["Category", "Channel", "Member", "Server"]
