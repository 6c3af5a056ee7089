"""Role mutation contracts.

Every write to roles, grants, assignments and overrides goes through
``RoleService`` so the server-level invariants hold:

* role positions are unique per server and the baseline role sits at 0,
* the baseline role is never deleted or moved,
* grant and override targets belong to the role's (or member's) server,
* grant lists and overrides are replaced wholesale, never patched.

Writes flush but do not commit; the caller's unit of work commits. Position
allocation and renumbering are the exception: they run under a per-server
``asyncio.Lock`` and commit before the lock is released.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chat_rbac.common.clock import ensure_utc, utc_now
from chat_rbac.common.ids import IdLike, parse_uuid
from chat_rbac.common.logging import log_context
from chat_rbac.core.rbac.errors import MemberNotFoundError
from chat_rbac.core.rbac.policy import BASELINE_ROLE_POSITION, DEFAULT_BASELINE_PERMISSIONS
from chat_rbac.core.rbac.snapshot import PermissionGrant, PermissionOverride
from chat_rbac.core.rbac.types import GrantType, PermissionScope, PermissionType
from chat_rbac.models import (
    AuditAction,
    AuditTargetType,
    Category,
    Channel,
    Member,
    MemberOverride,
    MemberRoleAssignment,
    PermissionAuditLog,
    Role,
    RoleGrant,
    Server,
)
from chat_rbac.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_ROLE_NAME_MAX = 100
_DEFAULT_COLOR = "#99AAB5"

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RoleError(ValueError):
    """Base class for role management errors."""


class RoleValidationError(RoleError):
    """Raised when a role payload is invalid."""


class RoleNotFoundError(RoleError):
    """Raised when a role cannot be located."""


class ServerNotFoundError(RoleError):
    """Raised when the server a mutation targets does not exist."""


class BaselineRoleError(RoleError):
    """Raised when a mutation would delete, move or assign the baseline role."""


class ScopeIntegrityError(RoleError):
    """Raised when a grant target does not belong to the role's server."""


class AssignmentError(RoleError):
    """Raised when a role cannot be assigned to or revoked from a member."""


# ---------------------------------------------------------------------------
# Per-server locks
# ---------------------------------------------------------------------------

_SERVER_LOCKS: weakref.WeakValueDictionary[UUID, asyncio.Lock] = weakref.WeakValueDictionary()


def _server_lock(server_id: UUID) -> asyncio.Lock:
    lock = _SERVER_LOCKS.get(server_id)
    if lock is None:
        lock = asyncio.Lock()
        _SERVER_LOCKS[server_id] = lock
    return lock


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalize_role_name(value: str) -> str:
    candidate = (value or "").strip()
    if not candidate:
        raise RoleValidationError("Role name is required")
    if len(candidate) > _ROLE_NAME_MAX:
        raise RoleValidationError(f"Role name must be at most {_ROLE_NAME_MAX} characters")
    return candidate


def _require_uuid(value: IdLike, error: type[Exception], label: str) -> UUID:
    parsed = parse_uuid(value)
    if parsed is None:
        raise error(f"{label} '{value}' not found")
    return parsed


def _grant_payload(grant: RoleGrant | PermissionGrant) -> dict[str, Any]:
    target = grant.target_id
    return {
        "permission": PermissionType(grant.permission).value,
        "grant_type": GrantType(grant.grant_type).value,
        "scope": PermissionScope(grant.scope).value,
        "target_id": None if target is None else str(target),
    }


def _override_payload(override: MemberOverride) -> dict[str, Any]:
    payload = _grant_payload(override)  # type: ignore[arg-type]
    payload["expires_at"] = (
        override.expires_at.isoformat() if override.expires_at is not None else None
    )
    payload["reason"] = override.reason
    return payload


class RoleService:
    """Entry point for role, assignment and override mutations."""

    def __init__(self, *, session: AsyncSession, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    # -- Lookups -----------------------------------------------------------
    async def get_role(self, role_id: IdLike) -> Role | None:
        role_uuid = parse_uuid(role_id)
        if role_uuid is None:
            return None
        stmt = select(Role).options(selectinload(Role.grants)).where(Role.id == role_uuid)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _require_role(self, role_id: IdLike) -> Role:
        role = await self.get_role(role_id)
        if role is None:
            raise RoleNotFoundError("Role not found")
        return role

    async def _require_server(self, server_id: IdLike) -> Server:
        server_uuid = _require_uuid(server_id, ServerNotFoundError, "Server")
        server = await self._session.get(Server, server_uuid)
        if server is None:
            raise ServerNotFoundError(f"Server '{server_id}' not found")
        return server

    async def _require_member(self, member_id: IdLike) -> Member:
        member_uuid = parse_uuid(member_id)
        member = None if member_uuid is None else await self._session.get(Member, member_uuid)
        if member is None:
            raise MemberNotFoundError(member_id)
        return member

    async def list_roles(self, server_id: IdLike) -> list[Role]:
        """Roles of a server, most senior first (baseline last)."""

        server_uuid = _require_uuid(server_id, ServerNotFoundError, "Server")
        stmt = (
            select(Role)
            .options(selectinload(Role.grants))
            .where(Role.server_id == server_uuid)
            .order_by(Role.position.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_baseline_role(self, server_id: IdLike) -> Role | None:
        server_uuid = parse_uuid(server_id)
        if server_uuid is None:
            return None
        stmt = (
            select(Role)
            .options(selectinload(Role.grants))
            .where(Role.server_id == server_uuid, Role.is_baseline.is_(True))
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    # -- Audit -------------------------------------------------------------
    def _audit(
        self,
        *,
        server_id: UUID,
        action: AuditAction,
        target_type: AuditTargetType,
        target_id: Any,
        actor_id: IdLike | None,
        permission: str | None = None,
        reason: str | None = None,
        old_value: Any = None,
        new_value: Any = None,
    ) -> None:
        if not self._settings.audit_enabled:
            return
        self._session.add(
            PermissionAuditLog(
                server_id=server_id,
                action=action,
                target_type=target_type,
                target_id=str(target_id),
                permission=permission,
                performed_by=parse_uuid(actor_id),
                reason=reason,
                old_value=old_value,
                new_value=new_value,
            )
        )

    # -- Scope integrity ---------------------------------------------------
    async def _check_target(
        self,
        *,
        server_id: UUID,
        scope: PermissionScope,
        target_id: str | None,
    ) -> UUID | None:
        if scope == PermissionScope.SERVER:
            return None
        target_uuid = parse_uuid(target_id)
        model = Channel if scope == PermissionScope.CHANNEL else Category
        row = None if target_uuid is None else await self._session.get(model, target_uuid)
        if row is None or row.server_id != server_id:
            raise ScopeIntegrityError(
                f"{scope.value.lower()} '{target_id}' does not belong to server '{server_id}'"
            )
        return target_uuid

    # -- Positions ---------------------------------------------------------
    @asynccontextmanager
    async def _positions_locked(self, server_id: UUID):
        """Hold the server's position lock and commit before releasing it."""

        async with _server_lock(server_id):
            try:
                yield
                await self._session.commit()
            except Exception:
                await self._session.rollback()
                raise

    async def _next_position(self, server_id: UUID) -> int:
        stmt = select(func.max(Role.position)).where(Role.server_id == server_id)
        result = await self._session.execute(stmt)
        highest = result.scalar_one_or_none()
        return max(int(highest or BASELINE_ROLE_POSITION), BASELINE_ROLE_POSITION) + 1

    async def _ordered_non_baseline(self, server_id: UUID) -> list[Role]:
        stmt = (
            select(Role)
            .where(Role.server_id == server_id, Role.is_baseline.is_(False))
            .order_by(Role.position.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def _renumber(self, roles_low_to_high: Sequence[Role]) -> None:
        # Two passes keep (server_id, position) unique after every statement.
        for index, role in enumerate(roles_low_to_high, start=1):
            role.position = -index
        await self._session.flush()
        for index, role in enumerate(roles_low_to_high, start=1):
            role.position = BASELINE_ROLE_POSITION + index
        await self._session.flush()

    # -- Roles -------------------------------------------------------------
    async def ensure_baseline_role(
        self,
        server_id: IdLike,
        *,
        actor_id: IdLike | None = None,
    ) -> Role:
        """Return the server's baseline role, creating it on first use."""

        server = await self._require_server(server_id)
        existing = await self.get_baseline_role(server.id)
        if existing is not None:
            return existing

        role = Role(
            server_id=server.id,
            name=self._settings.baseline_role_name,
            color=_DEFAULT_COLOR,
            position=BASELINE_ROLE_POSITION,
            is_baseline=True,
        )
        if self._settings.baseline_seed_defaults:
            role.grants = [
                RoleGrant(
                    ordinal=ordinal,
                    permission=permission,
                    grant_type=GrantType.ALLOW,
                    scope=PermissionScope.SERVER,
                )
                for ordinal, permission in enumerate(DEFAULT_BASELINE_PERMISSIONS)
            ]
        else:
            role.grants = []
        self._session.add(role)
        await self._session.flush()
        self._audit(
            server_id=server.id,
            action=AuditAction.ROLE_CREATED,
            target_type=AuditTargetType.ROLE,
            target_id=role.id,
            actor_id=actor_id,
            new_value={"name": role.name, "position": role.position, "baseline": True},
        )
        logger.info(
            "rbac.role.baseline.created",
            extra=log_context(
                server_id=server.id,
                role_id=role.id,
                seeded=self._settings.baseline_seed_defaults,
            ),
        )
        return role

    async def create_role(
        self,
        server_id: IdLike,
        *,
        name: str,
        color: str | None = None,
        hoisted: bool = False,
        mentionable: bool = False,
        actor_id: IdLike | None = None,
    ) -> Role:
        """Create a role directly above the current most senior one."""

        normalized_name = _normalize_role_name(name)
        server = await self._require_server(server_id)

        async with self._positions_locked(server.id):
            await self.ensure_baseline_role(server.id, actor_id=actor_id)
            position = await self._next_position(server.id)
            role = Role(
                server_id=server.id,
                name=normalized_name,
                color=(color or _DEFAULT_COLOR).strip(),
                position=position,
                hoisted=hoisted,
                mentionable=mentionable,
                is_baseline=False,
            )
            role.grants = []
            self._session.add(role)
            await self._session.flush()
            self._audit(
                server_id=server.id,
                action=AuditAction.ROLE_CREATED,
                target_type=AuditTargetType.ROLE,
                target_id=role.id,
                actor_id=actor_id,
                new_value={"name": role.name, "position": role.position},
            )

        logger.info(
            "rbac.role.create.success",
            extra=log_context(
                server_id=server.id,
                role_id=role.id,
                actor_id=actor_id,
                position=role.position,
            ),
        )
        return role

    async def replace_role_grants(
        self,
        role_id: IdLike,
        grants: Sequence[PermissionGrant],
        *,
        actor_id: IdLike | None = None,
    ) -> Role:
        """Swap the role's whole grant list for ``grants`` (order preserved)."""

        role = await self._require_role(role_id)
        desired = list(grants)
        targets = [
            await self._check_target(
                server_id=role.server_id,
                scope=grant.scope,
                target_id=grant.target_id,
            )
            for grant in desired
        ]

        old_value = [_grant_payload(grant) for grant in role.grants]
        role.grants.clear()
        await self._session.flush()
        role.grants.extend(
            [
                RoleGrant(
                    ordinal=ordinal,
                    permission=grant.permission,
                    grant_type=grant.grant_type,
                    scope=grant.scope,
                    target_id=target,
                )
                for ordinal, (grant, target) in enumerate(zip(desired, targets))
            ]
        )
        await self._session.flush()

        self._audit(
            server_id=role.server_id,
            action=AuditAction.ROLE_GRANTS_REPLACED,
            target_type=AuditTargetType.ROLE,
            target_id=role.id,
            actor_id=actor_id,
            old_value=old_value,
            new_value=[_grant_payload(grant) for grant in desired],
        )
        logger.info(
            "rbac.role.grants.replaced",
            extra=log_context(
                server_id=role.server_id,
                role_id=role.id,
                actor_id=actor_id,
                grants=len(desired),
            ),
        )
        return role

    async def delete_role(self, role_id: IdLike, *, actor_id: IdLike | None = None) -> None:
        """Delete a role together with its grants and assignments."""

        role = await self._require_role(role_id)
        if role.is_baseline:
            raise BaselineRoleError("The baseline role cannot be deleted")

        server_id = role.server_id
        snapshot = {"name": role.name, "position": role.position}
        await self._session.execute(
            delete(MemberRoleAssignment).where(MemberRoleAssignment.role_id == role.id)
        )
        await self._session.delete(role)

        self._audit(
            server_id=server_id,
            action=AuditAction.ROLE_DELETED,
            target_type=AuditTargetType.ROLE,
            target_id=role.id,
            actor_id=actor_id,
            old_value=snapshot,
        )
        await self._session.flush()
        logger.info(
            "rbac.role.delete.success",
            extra=log_context(server_id=server_id, role_id=role.id, actor_id=actor_id),
        )

    async def move_role(
        self,
        role_id: IdLike,
        position: int,
        *,
        actor_id: IdLike | None = None,
    ) -> list[Role]:
        """Move one role to ``position`` and shift the others to make room.

        Positions of non-baseline roles are always renumbered to ``1..n``.
        Returns the server's non-baseline roles, most junior first.
        """

        role = await self._require_role(role_id)
        if role.is_baseline:
            raise BaselineRoleError("The baseline role cannot be repositioned")

        async with self._positions_locked(role.server_id):
            ordered = await self._ordered_non_baseline(role.server_id)
            if not BASELINE_ROLE_POSITION < position <= len(ordered):
                raise RoleValidationError(f"Position must be between 1 and {len(ordered)}")
            before = {str(item.id): item.position for item in ordered}
            ordered = [item for item in ordered if item.id != role.id]
            ordered.insert(position - 1, role)
            await self._renumber(ordered)
            self._audit_reorder(role.server_id, before, ordered, actor_id)

        logger.info(
            "rbac.role.move.success",
            extra=log_context(
                server_id=role.server_id,
                role_id=role.id,
                actor_id=actor_id,
                position=position,
            ),
        )
        return ordered

    async def reorder_roles(
        self,
        server_id: IdLike,
        role_ids: Sequence[IdLike],
        *,
        actor_id: IdLike | None = None,
    ) -> list[Role]:
        """Apply a complete order, given most senior first.

        ``role_ids`` must name every non-baseline role of the server exactly
        once. Returns the roles most junior first.
        """

        server = await self._require_server(server_id)
        requested = [parse_uuid(value) for value in role_ids]

        async with self._positions_locked(server.id):
            baseline = await self.get_baseline_role(server.id)
            if baseline is not None and baseline.id in requested:
                raise BaselineRoleError("The baseline role cannot be repositioned")
            ordered = await self._ordered_non_baseline(server.id)
            by_id = {item.id: item for item in ordered}
            if len(requested) != len(set(requested)) or set(requested) != set(by_id):
                raise RoleValidationError("Role order must list every non-baseline role once")
            before = {str(item.id): item.position for item in ordered}
            new_order = [by_id[role_uuid] for role_uuid in reversed(requested)]
            await self._renumber(new_order)
            self._audit_reorder(server.id, before, new_order, actor_id)

        logger.info(
            "rbac.role.reorder.success",
            extra=log_context(server_id=server.id, actor_id=actor_id, roles=len(new_order)),
        )
        return new_order

    def _audit_reorder(
        self,
        server_id: UUID,
        before: dict[str, int],
        ordered: Sequence[Role],
        actor_id: IdLike | None,
    ) -> None:
        self._audit(
            server_id=server_id,
            action=AuditAction.ROLES_REORDERED,
            target_type=AuditTargetType.SERVER,
            target_id=server_id,
            actor_id=actor_id,
            old_value=before,
            new_value={str(item.id): item.position for item in ordered},
        )

    # -- Assignments -------------------------------------------------------
    async def get_assignment(
        self,
        *,
        member_id: UUID,
        role_id: UUID,
    ) -> MemberRoleAssignment | None:
        stmt = select(MemberRoleAssignment).where(
            MemberRoleAssignment.member_id == member_id,
            MemberRoleAssignment.role_id == role_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _assignment_target(self, member_id: IdLike, role_id: IdLike) -> tuple[Member, Role]:
        member = await self._require_member(member_id)
        role = await self._require_role(role_id)
        if role.server_id != member.server_id:
            raise AssignmentError("Role belongs to a different server than the member")
        return member, role

    async def _insert_assignment(self, values: dict[str, Any]) -> MemberRoleAssignment | None:
        """Insert one assignment row; ``None`` when the pair already exists."""

        bind = self._session.get_bind()
        if bind.dialect.name == "sqlite":
            stmt = sqlite_insert(MemberRoleAssignment).values(**values).prefix_with("OR IGNORE")
            await self._session.execute(stmt)
            return await self._session.get(MemberRoleAssignment, values["id"])

        assignment = MemberRoleAssignment(**values)
        try:
            async with self._session.begin_nested():
                self._session.add(assignment)
        except IntegrityError:
            return None
        return assignment

    async def assign_role(
        self,
        member_id: IdLike,
        role_id: IdLike,
        *,
        actor_id: IdLike | None = None,
    ) -> MemberRoleAssignment | None:
        """Give ``role_id`` to the member; a no-op when already held.

        The baseline role is held implicitly, so assigning it writes nothing
        and returns ``None``.
        """

        member, role = await self._assignment_target(member_id, role_id)
        member_uuid, role_uuid = member.id, role.id
        context = log_context(server_id=member.server_id, member_id=member.id, role_id=role.id)
        if role.is_baseline:
            logger.debug("rbac.role.assign.noop", extra=context)
            return None

        existing = await self.get_assignment(member_id=member_uuid, role_id=role_uuid)
        if existing is not None:
            logger.debug("rbac.role.assign.noop", extra=context)
            return existing

        assignment = await self._insert_assignment(
            {
                "id": uuid4(),
                "member_id": member_uuid,
                "role_id": role_uuid,
                "assigned_by": parse_uuid(actor_id),
            }
        )
        if assignment is None:
            # A concurrent assign stored the same pair first.
            existing = await self.get_assignment(member_id=member_uuid, role_id=role_uuid)
            if existing is None:
                raise AssignmentError("Role assignment could not be stored")
            logger.debug("rbac.role.assign.conflict", extra=context)
            return existing

        self._audit(
            server_id=member.server_id,
            action=AuditAction.ROLE_ASSIGNED,
            target_type=AuditTargetType.MEMBER,
            target_id=member.id,
            actor_id=actor_id,
            new_value={"role_id": str(role.id)},
        )
        await self._session.flush()
        logger.info(
            "rbac.role.assign.success",
            extra=log_context(
                server_id=member.server_id,
                member_id=member.id,
                role_id=role.id,
                actor_id=actor_id,
            ),
        )
        return assignment

    async def revoke_role(
        self,
        member_id: IdLike,
        role_id: IdLike,
        *,
        actor_id: IdLike | None = None,
    ) -> bool:
        """Take ``role_id`` away; returns ``False`` when it was not held."""

        member, role = await self._assignment_target(member_id, role_id)
        if role.is_baseline:
            raise BaselineRoleError("The baseline role is held implicitly by every member")
        existing = await self.get_assignment(member_id=member.id, role_id=role.id)
        if existing is None:
            logger.debug(
                "rbac.role.revoke.noop",
                extra=log_context(server_id=member.server_id, member_id=member.id, role_id=role.id),
            )
            return False

        await self._session.delete(existing)
        self._audit(
            server_id=member.server_id,
            action=AuditAction.ROLE_REVOKED,
            target_type=AuditTargetType.MEMBER,
            target_id=member.id,
            actor_id=actor_id,
            old_value={"role_id": str(role.id)},
        )
        await self._session.flush()
        logger.info(
            "rbac.role.revoke.success",
            extra=log_context(
                server_id=member.server_id,
                member_id=member.id,
                role_id=role.id,
                actor_id=actor_id,
            ),
        )
        return True

    # -- Overrides ---------------------------------------------------------
    async def _find_override(
        self,
        *,
        member_id: UUID,
        permission: PermissionType,
        scope: PermissionScope,
        target_id: str | None,
    ) -> MemberOverride | None:
        stmt = select(MemberOverride).where(
            MemberOverride.member_id == member_id,
            MemberOverride.permission == permission,
            MemberOverride.scope == scope,
            MemberOverride.target_key == (target_id or ""),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_override(
        self,
        member_id: IdLike,
        *,
        permission: PermissionType | str,
        grant_type: GrantType | str,
        scope: PermissionScope | str = PermissionScope.SERVER,
        target_id: str | None = None,
        expires_at: datetime | None = None,
        reason: str | None = None,
        actor_id: IdLike | None = None,
    ) -> MemberOverride:
        """Set the member's override for one (permission, scope, target).

        Any existing override with the same key is replaced, not updated.
        """

        # Validates the permission/scope/target combination.
        desired = PermissionOverride(
            permission=permission,
            grant_type=grant_type,
            scope=scope,
            target_id=target_id,
            expires_at=expires_at,
            reason=reason,
        )
        if desired.expires_at is not None and desired.expires_at <= utc_now():
            raise RoleValidationError("Override expiry must be in the future")

        member = await self._require_member(member_id)
        target_uuid = await self._check_target(
            server_id=member.server_id,
            scope=desired.scope,
            target_id=desired.target_id,
        )
        target_key = "" if target_uuid is None else str(target_uuid)

        previous = await self._find_override(
            member_id=member.id,
            permission=desired.permission,
            scope=desired.scope,
            target_id=target_key,
        )
        old_value = None
        if previous is not None:
            old_value = _override_payload(previous)
            await self._session.delete(previous)
            await self._session.flush()

        override = MemberOverride(
            member_id=member.id,
            permission=desired.permission,
            grant_type=desired.grant_type,
            scope=desired.scope,
            target_id=target_uuid,
            target_key=target_key,
            assigned_by=parse_uuid(actor_id),
            reason=(reason or "").strip() or None,
            expires_at=ensure_utc(expires_at) if expires_at is not None else None,
        )
        self._session.add(override)
        await self._session.flush()

        self._audit(
            server_id=member.server_id,
            action=AuditAction.OVERRIDE_SET,
            target_type=AuditTargetType.MEMBER,
            target_id=member.id,
            actor_id=actor_id,
            permission=desired.permission.value,
            reason=override.reason,
            old_value=old_value,
            new_value=_override_payload(override),
        )
        await self._session.flush()
        logger.info(
            "rbac.override.set",
            extra=log_context(
                server_id=member.server_id,
                member_id=member.id,
                actor_id=actor_id,
                permission=desired.permission,
                grant_type=desired.grant_type,
                scope=desired.scope,
                replaced=previous is not None,
            ),
        )
        return override

    async def clear_override(
        self,
        member_id: IdLike,
        *,
        permission: PermissionType | str,
        scope: PermissionScope | str = PermissionScope.SERVER,
        target_id: str | None = None,
        actor_id: IdLike | None = None,
    ) -> bool:
        """Delete the override with this key; ``False`` when none existed."""

        key = PermissionGrant(
            permission=permission,
            grant_type=GrantType.ALLOW,
            scope=scope,
            target_id=target_id,
        )
        member = await self._require_member(member_id)
        target_uuid = parse_uuid(key.target_id)
        if key.target_id is not None and target_uuid is None:
            return False
        target_key = "" if target_uuid is None else str(target_uuid)
        existing = await self._find_override(
            member_id=member.id,
            permission=key.permission,
            scope=key.scope,
            target_id=target_key,
        )
        if existing is None:
            return False

        old_value = _override_payload(existing)
        await self._session.delete(existing)
        self._audit(
            server_id=member.server_id,
            action=AuditAction.OVERRIDE_CLEARED,
            target_type=AuditTargetType.MEMBER,
            target_id=member.id,
            actor_id=actor_id,
            permission=key.permission.value,
            old_value=old_value,
        )
        await self._session.flush()
        logger.info(
            "rbac.override.cleared",
            extra=log_context(
                server_id=member.server_id,
                member_id=member.id,
                actor_id=actor_id,
                permission=key.permission,
                scope=key.scope,
            ),
        )
        return True


__all__ = [
    "AssignmentError",
    "BaselineRoleError",
    "RoleError",
    "RoleNotFoundError",
    "RoleService",
    "RoleValidationError",
    "ScopeIntegrityError",
    "ServerNotFoundError",
]
