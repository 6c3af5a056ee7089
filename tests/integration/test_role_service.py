"""Role mutation contracts against a real database."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from uuid import UUID

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chat_rbac.common.clock import utc_now
from chat_rbac.core.rbac.policy import DEFAULT_BASELINE_PERMISSIONS
from chat_rbac.core.rbac.snapshot import PermissionGrant
from chat_rbac.core.rbac.types import GrantType, PermissionScope, PermissionType
from chat_rbac.db import Database
from chat_rbac.features.grants import GrantStore
from chat_rbac.features.roles import (
    AssignmentError,
    BaselineRoleError,
    RoleNotFoundError,
    RoleService,
    RoleValidationError,
    ScopeIntegrityError,
    ServerNotFoundError,
)
from chat_rbac.models import (
    AuditAction,
    MemberOverride,
    MemberRoleAssignment,
    PermissionAuditLog,
    RoleGrant,
)
from chat_rbac.settings import Settings
from tests.integration.conftest import SeededServer

pytestmark = pytest.mark.asyncio

P = PermissionType


async def _count(session: AsyncSession, model, *criteria) -> int:
    stmt = select(func.count()).select_from(model).where(*criteria)
    return int((await session.execute(stmt)).scalar_one())


async def _audit_actions(session: AsyncSession) -> list[AuditAction]:
    stmt = select(PermissionAuditLog.action).order_by(PermissionAuditLog.created_at)
    return list((await session.execute(stmt)).scalars().all())


# -- Create / delete -------------------------------------------------------


async def test_create_role_stacks_positions_above_baseline(
    roles: RoleService, seed: SeededServer
) -> None:
    first = await roles.create_role(seed.server.id, name="  Helper ")
    second = await roles.create_role(seed.server.id, name="Moderator", color="#FF0000")

    listed = await roles.list_roles(seed.server.id)

    assert [role.position for role in listed] == [2, 1, 0]
    assert listed[-1].is_baseline
    assert listed[-1].name == "@everyone"
    assert first.name == "Helper"
    assert first.grants == []
    assert second.color == "#FF0000"


async def test_create_role_validates_input(roles: RoleService, seed: SeededServer) -> None:
    with pytest.raises(RoleValidationError):
        await roles.create_role(seed.server.id, name="   ")
    with pytest.raises(RoleValidationError):
        await roles.create_role(seed.server.id, name="x" * 101)
    with pytest.raises(ServerNotFoundError):
        await roles.create_role("missing", name="Helper")


async def test_ensure_baseline_role_is_idempotent(roles: RoleService, seed: SeededServer) -> None:
    first = await roles.ensure_baseline_role(seed.server.id)
    second = await roles.ensure_baseline_role(seed.server.id)

    assert first.id == second.id
    assert first.position == 0
    assert first.grants == []


async def test_baseline_role_seeds_default_grants(
    session: AsyncSession, seed: SeededServer
) -> None:
    seeded = RoleService(
        session=session,
        settings=Settings(baseline_seed_defaults=True, baseline_role_name="members"),
    )

    baseline = await seeded.ensure_baseline_role(seed.server.id)

    assert baseline.name == "members"
    assert [grant.permission for grant in baseline.grants] == list(DEFAULT_BASELINE_PERMISSIONS)
    assert {grant.grant_type for grant in baseline.grants} == {GrantType.ALLOW}


async def test_delete_role_cascades(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    role = await roles.create_role(seed.server.id, name="Temp")
    await roles.replace_role_grants(role.id, [PermissionGrant(P.KICK_MEMBERS, GrantType.ALLOW)])
    await roles.assign_role(seed.regular.id, role.id)
    await session.commit()

    await roles.delete_role(role.id)
    await session.commit()

    assert await roles.get_role(role.id) is None
    assert await _count(session, RoleGrant, RoleGrant.role_id == role.id) == 0
    assert (
        await _count(session, MemberRoleAssignment, MemberRoleAssignment.role_id == role.id) == 0
    )


async def test_baseline_role_cannot_be_deleted_or_moved(
    roles: RoleService, seed: SeededServer
) -> None:
    baseline = await roles.ensure_baseline_role(seed.server.id)
    other = await roles.create_role(seed.server.id, name="Helper")

    with pytest.raises(BaselineRoleError):
        await roles.delete_role(baseline.id)
    with pytest.raises(BaselineRoleError):
        await roles.move_role(baseline.id, 1)
    with pytest.raises(BaselineRoleError):
        await roles.reorder_roles(seed.server.id, [other.id, baseline.id])


async def test_unknown_role_raises(roles: RoleService, seed: SeededServer) -> None:
    with pytest.raises(RoleNotFoundError):
        await roles.delete_role("9c5d1d1e-0000-0000-0000-000000000000")
    with pytest.raises(RoleNotFoundError):
        await roles.replace_role_grants("nope", [])


# -- Grants ------------------------------------------------------------------


async def test_replace_role_grants_swaps_whole_list(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    role = await roles.create_role(seed.server.id, name="Helper")
    await roles.replace_role_grants(
        role.id,
        [
            PermissionGrant(P.KICK_MEMBERS, GrantType.ALLOW),
            PermissionGrant(P.BAN_MEMBERS, GrantType.ALLOW),
        ],
    )

    updated = await roles.replace_role_grants(
        role.id,
        [
            PermissionGrant(
                P.MANAGE_MESSAGES,
                GrantType.ALLOW,
                PermissionScope.CATEGORY,
                str(seed.category.id),
            ),
        ],
    )
    await session.commit()

    assert [(grant.permission, grant.scope) for grant in updated.grants] == [
        (P.MANAGE_MESSAGES, PermissionScope.CATEGORY)
    ]
    assert updated.grants[0].target_id == seed.category.id
    assert await _count(session, RoleGrant, RoleGrant.role_id == role.id) == 1


async def test_grant_targets_must_belong_to_the_server(
    roles: RoleService, seed: SeededServer
) -> None:
    role = await roles.create_role(seed.server.id, name="Helper")

    with pytest.raises(ScopeIntegrityError):
        await roles.replace_role_grants(
            role.id,
            [
                PermissionGrant(
                    P.SEND_MESSAGES,
                    GrantType.ALLOW,
                    PermissionScope.CHANNEL,
                    str(seed.foreign_channel.id),
                )
            ],
        )
    # A category id is not a channel.
    with pytest.raises(ScopeIntegrityError):
        await roles.replace_role_grants(
            role.id,
            [
                PermissionGrant(
                    P.SEND_MESSAGES,
                    GrantType.ALLOW,
                    PermissionScope.CHANNEL,
                    str(seed.category.id),
                )
            ],
        )


# -- Repositioning -----------------------------------------------------------


async def test_move_role_renumbers_contiguously(roles: RoleService, seed: SeededServer) -> None:
    a = await roles.create_role(seed.server.id, name="A")
    b = await roles.create_role(seed.server.id, name="B")
    c = await roles.create_role(seed.server.id, name="C")

    ordered = await roles.move_role(c.id, 1)

    assert [role.name for role in ordered] == ["C", "A", "B"]
    assert (c.position, a.position, b.position) == (1, 2, 3)
    listed = await roles.list_roles(seed.server.id)
    assert [role.position for role in listed] == [3, 2, 1, 0]


async def test_move_role_rejects_out_of_range(roles: RoleService, seed: SeededServer) -> None:
    role = await roles.create_role(seed.server.id, name="Only")
    role_id = role.id

    with pytest.raises(RoleValidationError):
        await roles.move_role(role_id, 0)
    with pytest.raises(RoleValidationError):
        await roles.move_role(role_id, 2)


async def test_reorder_roles_applies_complete_order(
    roles: RoleService, seed: SeededServer
) -> None:
    a = await roles.create_role(seed.server.id, name="A")
    b = await roles.create_role(seed.server.id, name="B")
    c = await roles.create_role(seed.server.id, name="C")

    ordered = await roles.reorder_roles(seed.server.id, [a.id, c.id, b.id])

    assert [role.name for role in ordered] == ["B", "C", "A"]
    assert (a.position, c.position, b.position) == (3, 2, 1)


async def test_reorder_roles_requires_every_role_once(
    roles: RoleService, seed: SeededServer
) -> None:
    server_id = seed.server.id
    a_id = (await roles.create_role(server_id, name="A")).id
    b_id = (await roles.create_role(server_id, name="B")).id

    # A failed reorder rolls the session back, so only plain ids are reused.
    with pytest.raises(RoleValidationError):
        await roles.reorder_roles(server_id, [a_id])
    with pytest.raises(RoleValidationError):
        await roles.reorder_roles(server_id, [a_id, a_id, b_id])


async def test_concurrent_creates_get_distinct_positions(
    database: Database, settings: Settings, seed: SeededServer
) -> None:
    async def create(name: str) -> int:
        async with database.sessionmaker() as session:
            role = await RoleService(session=session, settings=settings).create_role(
                seed.server.id, name=name
            )
            return role.position

    positions = await asyncio.gather(*(create(f"Role {index}") for index in range(4)))

    assert sorted(positions) == [1, 2, 3, 4]


# -- Assignments -------------------------------------------------------------


async def test_assign_and_revoke_are_idempotent(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    role = await roles.create_role(seed.server.id, name="Helper")

    first = await roles.assign_role(seed.regular.id, role.id, actor_id=seed.owner.id)
    second = await roles.assign_role(seed.regular.id, role.id)
    await session.commit()

    assert first is not None and second is not None
    assert first.id == second.id
    assert first.assigned_by == seed.owner.id
    assert await roles.revoke_role(seed.regular.id, role.id) is True
    assert await roles.revoke_role(seed.regular.id, role.id) is False
    assert await _count(session, MemberRoleAssignment) == 0


async def test_assign_returns_row_stored_by_concurrent_assign(
    monkeypatch: pytest.MonkeyPatch,
    session: AsyncSession,
    roles: RoleService,
    seed: SeededServer,
) -> None:
    role = await roles.create_role(seed.server.id, name="Helper")
    stored = await roles.assign_role(seed.regular.id, role.id)
    await session.commit()
    assert stored is not None

    lookup = roles.get_assignment
    calls: list[UUID] = []

    async def miss_first_lookup(*, member_id: UUID, role_id: UUID) -> MemberRoleAssignment | None:
        # The first lookup runs before the other writer's row is visible.
        calls.append(member_id)
        if len(calls) == 1:
            return None
        return await lookup(member_id=member_id, role_id=role_id)

    monkeypatch.setattr(roles, "get_assignment", miss_first_lookup)

    again = await roles.assign_role(seed.regular.id, role.id)
    await session.commit()

    assert again is not None
    assert again.id == stored.id
    assert len(calls) == 2
    assert await _count(session, MemberRoleAssignment) == 1
    assert sorted(await _audit_actions(session)) == [
        AuditAction.ROLE_ASSIGNED,
        AuditAction.ROLE_CREATED,
        AuditAction.ROLE_CREATED,
    ]


async def test_assigning_baseline_role_is_a_noop(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    role = await roles.create_role(seed.server.id, name="Helper")
    baseline = await roles.get_baseline_role(seed.server.id)
    assert baseline is not None
    store = GrantStore(session=session)
    before = await store.load_snapshot(seed.regular.id)

    result = await roles.assign_role(seed.regular.id, baseline.id)
    await session.commit()

    assert result is None
    assert await store.load_snapshot(seed.regular.id) == before
    assert await _count(session, MemberRoleAssignment) == 0
    with pytest.raises(AssignmentError):
        await roles.assign_role(seed.outsider.id, role.id)
    with pytest.raises(BaselineRoleError):
        await roles.revoke_role(seed.regular.id, baseline.id)


# -- Overrides ---------------------------------------------------------------


async def test_set_override_replaces_existing_key(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    channel_id = str(seed.channel.id)
    first = await roles.set_override(
        seed.regular.id,
        permission=P.SEND_MESSAGES,
        grant_type=GrantType.ALLOW,
        scope=PermissionScope.CHANNEL,
        target_id=channel_id,
    )
    second = await roles.set_override(
        seed.regular.id,
        permission="send_messages",
        grant_type="deny",
        scope="channel",
        target_id=channel_id,
        reason="  spam  ",
        actor_id=seed.owner.id,
    )
    await session.commit()

    assert first.id != second.id
    assert second.grant_type == GrantType.DENY
    assert second.reason == "spam"
    assert second.target_key == channel_id
    assert await _count(session, MemberOverride) == 1


async def test_override_keys_distinguish_scope(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    await roles.set_override(seed.regular.id, permission=P.SEND_MESSAGES, grant_type="ALLOW")
    await roles.set_override(
        seed.regular.id,
        permission=P.SEND_MESSAGES,
        grant_type="DENY",
        scope="CHANNEL",
        target_id=str(seed.channel.id),
    )

    assert await _count(session, MemberOverride) == 2


async def test_clear_override_deletes_row(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    await roles.set_override(
        seed.regular.id,
        permission=P.SEND_MESSAGES,
        grant_type=GrantType.DENY,
        scope=PermissionScope.CHANNEL,
        target_id=str(seed.channel.id),
    )

    assert (
        await roles.clear_override(
            seed.regular.id,
            permission=P.SEND_MESSAGES,
            scope=PermissionScope.CHANNEL,
            target_id=str(seed.channel.id),
        )
        is True
    )
    assert await roles.clear_override(seed.regular.id, permission=P.SEND_MESSAGES) is False
    assert await _count(session, MemberOverride) == 0


async def test_override_validation(roles: RoleService, seed: SeededServer) -> None:
    with pytest.raises(RoleValidationError):
        await roles.set_override(
            seed.regular.id,
            permission=P.SEND_MESSAGES,
            grant_type=GrantType.ALLOW,
            expires_at=utc_now() - timedelta(minutes=1),
        )
    with pytest.raises(ScopeIntegrityError):
        await roles.set_override(
            seed.regular.id,
            permission=P.SEND_MESSAGES,
            grant_type=GrantType.ALLOW,
            scope=PermissionScope.CHANNEL,
            target_id=str(seed.foreign_channel.id),
        )


# -- Audit -------------------------------------------------------------------


async def test_mutations_are_audited(
    session: AsyncSession, roles: RoleService, seed: SeededServer
) -> None:
    role = await roles.create_role(seed.server.id, name="Helper", actor_id=seed.owner.id)
    await roles.replace_role_grants(role.id, [PermissionGrant(P.KICK_MEMBERS, GrantType.ALLOW)])
    await roles.assign_role(seed.regular.id, role.id)
    await roles.set_override(seed.regular.id, permission=P.EMBED_LINKS, grant_type="DENY")
    await session.commit()

    actions = await _audit_actions(session)

    assert sorted(actions) == sorted(
        [
            AuditAction.ROLE_CREATED,
            AuditAction.ROLE_CREATED,
            AuditAction.ROLE_GRANTS_REPLACED,
            AuditAction.ROLE_ASSIGNED,
            AuditAction.OVERRIDE_SET,
        ]
    )


async def test_audit_can_be_disabled(session: AsyncSession, seed: SeededServer) -> None:
    quiet = RoleService(session=session, settings=Settings(audit_enabled=False))

    await quiet.create_role(seed.server.id, name="Helper")

    assert await _count(session, PermissionAuditLog) == 0
