"""Builders for member snapshots used across unit tests."""

from __future__ import annotations

from datetime import UTC, datetime

from chat_rbac.core.rbac.snapshot import (
    MemberSnapshot,
    PermissionGrant,
    PermissionOverride,
    RoleSnapshot,
)
from chat_rbac.core.rbac.types import GrantType, LegacyRole, PermissionScope, PermissionType

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

CHANNEL_A = "11111111-1111-1111-1111-111111111111"
CHANNEL_B = "22222222-2222-2222-2222-222222222222"
CATEGORY_A = "33333333-3333-3333-3333-333333333333"


def allow(
    permission: PermissionType,
    scope: PermissionScope = PermissionScope.SERVER,
    target_id: str | None = None,
) -> PermissionGrant:
    return PermissionGrant(permission, GrantType.ALLOW, scope, target_id)


def deny(
    permission: PermissionType,
    scope: PermissionScope = PermissionScope.SERVER,
    target_id: str | None = None,
) -> PermissionGrant:
    return PermissionGrant(permission, GrantType.DENY, scope, target_id)


def role(position: int, *grants: PermissionGrant, role_id: str | None = None) -> RoleSnapshot:
    return RoleSnapshot(
        position=position,
        grants=grants,
        role_id=role_id or f"role-{position}",
        name=f"Role {position}",
    )


def override(
    permission: PermissionType,
    grant_type: GrantType,
    scope: PermissionScope = PermissionScope.SERVER,
    target_id: str | None = None,
    *,
    override_id: str | None = None,
    created_at: datetime | None = None,
    expires_at: datetime | None = None,
) -> PermissionOverride:
    return PermissionOverride(
        permission=permission,
        grant_type=grant_type,
        scope=scope,
        target_id=target_id,
        override_id=override_id,
        created_at=created_at,
        expires_at=expires_at,
    )


def member(
    *roles: RoleSnapshot,
    member_id: str = "member-1",
    server_id: str = "server-1",
    is_owner: bool = False,
    legacy_role: LegacyRole = LegacyRole.GUEST,
    overrides: tuple[PermissionOverride, ...] = (),
    with_baseline: bool = True,
) -> MemberSnapshot:
    all_roles = tuple(roles)
    if with_baseline and not any(item.position == 0 for item in all_roles):
        all_roles = (*all_roles, RoleSnapshot(position=0, role_id="baseline", name="@everyone"))
    return MemberSnapshot(
        member_id=member_id,
        server_id=server_id,
        is_owner=is_owner,
        legacy_role=legacy_role,
        roles=all_roles,
        overrides=overrides,
    )
