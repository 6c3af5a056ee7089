"""Read-only accessor that assembles member snapshots from storage."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chat_rbac.common.clock import ensure_utc, utc_now
from chat_rbac.common.ids import IdLike, parse_uuid
from chat_rbac.common.logging import log_context
from chat_rbac.core.rbac.errors import MemberNotFoundError
from chat_rbac.core.rbac.snapshot import (
    MemberSnapshot,
    PermissionGrant,
    PermissionOverride,
    RoleSnapshot,
)
from chat_rbac.models import (
    Member,
    MemberOverride,
    MemberRoleAssignment,
    Role,
    RoleGrant,
    Server,
)

logger = logging.getLogger(__name__)


def _str_or_none(value: UUID | None) -> str | None:
    return None if value is None else str(value)


def role_to_snapshot(role: Role) -> RoleSnapshot:
    return RoleSnapshot(
        position=role.position,
        grants=tuple(grant_to_snapshot(grant) for grant in role.grants),
        role_id=str(role.id),
        name=role.name,
    )


def grant_to_snapshot(grant: RoleGrant) -> PermissionGrant:
    return PermissionGrant(
        permission=grant.permission,
        grant_type=grant.grant_type,
        scope=grant.scope,
        target_id=_str_or_none(grant.target_id),
    )


def override_to_snapshot(override: MemberOverride) -> PermissionOverride:
    return PermissionOverride(
        permission=override.permission,
        grant_type=override.grant_type,
        scope=override.scope,
        target_id=_str_or_none(override.target_id),
        override_id=str(override.id),
        assigned_by=_str_or_none(override.assigned_by),
        reason=override.reason,
        expires_at=override.expires_at,
        created_at=override.created_at,
    )


class GrantStore:
    """Builds ``MemberSnapshot`` values; never writes."""

    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    async def get_member(self, member_id: IdLike) -> Member | None:
        member_uuid = parse_uuid(member_id)
        if member_uuid is None:
            return None
        return await self._session.get(Member, member_uuid)

    async def find_member(self, *, server_id: IdLike, profile_id: IdLike) -> Member | None:
        server_uuid = parse_uuid(server_id)
        profile_uuid = parse_uuid(profile_id)
        if server_uuid is None or profile_uuid is None:
            return None
        stmt = select(Member).where(
            Member.server_id == server_uuid,
            Member.profile_id == profile_uuid,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def load_snapshot(
        self,
        member_id: IdLike,
        *,
        now: datetime | None = None,
    ) -> MemberSnapshot:
        """Snapshot of ``member_id``; raises ``MemberNotFoundError`` when absent."""

        member = await self.get_member(member_id)
        if member is None:
            logger.debug("rbac.snapshot.member_missing", extra=log_context(member_id=member_id))
            raise MemberNotFoundError(member_id)
        return await self.snapshot_for(member, now=now)

    async def load_member_snapshot(
        self,
        *,
        server_id: IdLike,
        profile_id: IdLike,
        now: datetime | None = None,
    ) -> MemberSnapshot:
        """Snapshot for a profile inside a server (the usual request shape)."""

        member = await self.find_member(server_id=server_id, profile_id=profile_id)
        if member is None:
            logger.debug(
                "rbac.snapshot.member_missing",
                extra=log_context(server_id=server_id, profile_id=str(profile_id)),
            )
            raise MemberNotFoundError(profile_id)
        return await self.snapshot_for(member, now=now)

    async def load_snapshots(
        self,
        member_ids: Iterable[IdLike],
        *,
        now: datetime | None = None,
    ) -> dict[str, MemberSnapshot]:
        """Snapshots keyed by member id, all taken at the same instant."""

        moment = ensure_utc(now) if now is not None else utc_now()
        snapshots: dict[str, MemberSnapshot] = {}
        for member_id in member_ids:
            snapshot = await self.load_snapshot(member_id, now=moment)
            snapshots[str(snapshot.member_id)] = snapshot
        return snapshots

    async def snapshot_for(
        self,
        member: Member,
        *,
        now: datetime | None = None,
    ) -> MemberSnapshot:
        moment = ensure_utc(now) if now is not None else utc_now()
        server = await self._session.get(Server, member.server_id)
        if server is None:
            raise MemberNotFoundError(member.id)
        roles = await self._roles_for(member)
        overrides = await self._active_overrides(member.id, moment)

        snapshot = MemberSnapshot(
            member_id=str(member.id),
            server_id=str(member.server_id),
            is_owner=server.owner_profile_id == member.profile_id,
            legacy_role=member.legacy_role,
            roles=tuple(role_to_snapshot(role) for role in roles),
            overrides=tuple(override_to_snapshot(item) for item in overrides),
        )
        logger.debug(
            "rbac.snapshot.loaded",
            extra=log_context(
                server_id=member.server_id,
                member_id=member.id,
                roles=len(snapshot.roles),
                overrides=len(snapshot.overrides),
            ),
        )
        return snapshot

    async def _roles_for(self, member: Member) -> Sequence[Role]:
        # The baseline role is held implicitly, assigned or not.
        assigned = select(MemberRoleAssignment.role_id).where(
            MemberRoleAssignment.member_id == member.id
        )
        stmt = (
            select(Role)
            .options(selectinload(Role.grants))
            .where(
                Role.server_id == member.server_id,
                or_(Role.is_baseline.is_(True), Role.id.in_(assigned)),
            )
            .order_by(Role.position.desc())
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def _active_overrides(self, member_id: UUID, now: datetime) -> Sequence[MemberOverride]:
        stmt = (
            select(MemberOverride)
            .where(
                MemberOverride.member_id == member_id,
                or_(MemberOverride.expires_at.is_(None), MemberOverride.expires_at > now),
            )
            .order_by(MemberOverride.created_at)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()


__all__ = [
    "GrantStore",
    "grant_to_snapshot",
    "override_to_snapshot",
    "role_to_snapshot",
]
