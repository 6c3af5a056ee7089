"""Snapshot assembly from stored roles, grants and overrides."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from chat_rbac.common.clock import utc_now
from chat_rbac.core.rbac.errors import MemberNotFoundError
from chat_rbac.core.rbac.snapshot import PermissionGrant
from chat_rbac.core.rbac.types import GrantType, LegacyRole, PermissionScope, PermissionType
from chat_rbac.features.grants import GrantStore
from chat_rbac.features.roles import RoleService
from tests.integration.conftest import SeededServer

pytestmark = pytest.mark.asyncio

P = PermissionType


async def test_snapshot_holds_baseline_and_assigned_roles(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    helper = await roles.create_role(seed.server.id, name="Helper")
    await roles.create_role(seed.server.id, name="Unassigned")
    await roles.replace_role_grants(
        helper.id,
        [
            PermissionGrant(P.KICK_MEMBERS, GrantType.ALLOW),
            PermissionGrant(
                P.SEND_MESSAGES, GrantType.DENY, PermissionScope.CHANNEL, str(seed.channel.id)
            ),
        ],
    )
    await roles.assign_role(seed.moderator.id, helper.id)
    await session.commit()

    snapshot = await GrantStore(session=session).load_snapshot(seed.moderator.id)

    assert snapshot.member_id == str(seed.moderator.id)
    assert snapshot.server_id == str(seed.server.id)
    assert [role.name for role in snapshot.ordered_roles] == ["Helper", "@everyone"]
    assert snapshot.rank == helper.position
    helper_grants = snapshot.ordered_roles[0].grants
    assert [grant.permission for grant in helper_grants] == [P.KICK_MEMBERS, P.SEND_MESSAGES]
    assert helper_grants[1].target_id == str(seed.channel.id)


async def test_member_without_roles_still_holds_baseline(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    await roles.ensure_baseline_role(seed.server.id)
    await session.commit()

    snapshot = await GrantStore(session=session).load_snapshot(seed.regular.id)

    assert len(snapshot.roles) == 1
    assert snapshot.roles[0].is_baseline
    assert snapshot.rank == 0
    assert snapshot.legacy_role == LegacyRole.GUEST


async def test_owner_flag_comes_from_server(session: AsyncSession, seed: SeededServer) -> None:
    store = GrantStore(session=session)

    owner = await store.load_snapshot(seed.owner.id)
    regular = await store.load_snapshot(seed.regular.id)

    assert owner.is_owner is True
    assert regular.is_owner is False


async def test_expired_overrides_are_left_out(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    expires = utc_now() + timedelta(hours=1)
    await roles.set_override(
        seed.regular.id,
        permission=P.ATTACH_FILES,
        grant_type=GrantType.ALLOW,
        expires_at=expires,
    )
    await roles.set_override(seed.regular.id, permission=P.EMBED_LINKS, grant_type=GrantType.DENY)
    await session.commit()
    store = GrantStore(session=session)

    current = await store.load_snapshot(seed.regular.id)
    later = await store.load_snapshot(seed.regular.id, now=expires + timedelta(seconds=1))

    assert {item.permission for item in current.overrides} == {P.ATTACH_FILES, P.EMBED_LINKS}
    assert {item.permission for item in later.overrides} == {P.EMBED_LINKS}


async def test_missing_member_raises(session: AsyncSession, seed: SeededServer) -> None:
    store = GrantStore(session=session)

    with pytest.raises(MemberNotFoundError):
        await store.load_snapshot(uuid4())
    with pytest.raises(MemberNotFoundError):
        await store.load_snapshot("not-a-uuid")


async def test_lookup_by_profile(session: AsyncSession, seed: SeededServer) -> None:
    store = GrantStore(session=session)

    snapshot = await store.load_member_snapshot(
        server_id=seed.server.id,
        profile_id=seed.owner.profile_id,
    )

    assert snapshot.member_id == str(seed.owner.id)
    assert snapshot.is_owner is True
    with pytest.raises(MemberNotFoundError):
        await store.load_member_snapshot(
            server_id=seed.other_server.id,
            profile_id=seed.owner.profile_id,
        )


async def test_load_snapshots_keys_by_member(session: AsyncSession, seed: SeededServer) -> None:
    store = GrantStore(session=session)

    snapshots = await store.load_snapshots([seed.owner.id, str(seed.regular.id)])

    assert set(snapshots) == {str(seed.owner.id), str(seed.regular.id)}
    assert snapshots[str(seed.owner.id)].is_owner is True
