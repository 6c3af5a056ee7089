"""Permission checks backed by stored grants.

``PermissionService`` fetches one snapshot per call through the grant store
and hands it to the pure engine and hierarchy guard. ``require_*`` variants
raise ``PermissionDeniedError`` so HTTP adapters can translate it to 403.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from chat_rbac.common.clock import ensure_utc, utc_now
from chat_rbac.common.ids import IdLike, parse_uuid
from chat_rbac.common.logging import log_context
from chat_rbac.core.rbac import hierarchy
from chat_rbac.core.rbac.engine import (
    Decision,
    PermissionQuery,
    QueryLike,
    as_query,
    effective_permissions,
    resolve,
    resolve_many,
)
from chat_rbac.core.rbac.errors import PermissionDeniedError
from chat_rbac.core.rbac.snapshot import MemberSnapshot
from chat_rbac.core.rbac.types import (
    ModerationAction,
    PermissionScope,
    PermissionType,
)
from chat_rbac.features.grants.store import GrantStore
from chat_rbac.features.roles.service import RoleNotFoundError
from chat_rbac.models import Role

logger = logging.getLogger(__name__)

HIERARCHY_DENIAL = "HIERARCHY"


class PermissionService:
    """Answer "may this member do X" questions against the database."""

    def __init__(self, *, session: AsyncSession, store: GrantStore | None = None) -> None:
        self._session = session
        self._store = store or GrantStore(session=session)

    async def snapshot(self, member_id: IdLike, *, now: datetime | None = None) -> MemberSnapshot:
        return await self._store.load_snapshot(member_id, now=now)

    # -- Single and batch checks ------------------------------------------
    async def check(
        self,
        member_id: IdLike,
        permission: PermissionType | str,
        scope: PermissionScope | str = PermissionScope.SERVER,
        target_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Decision:
        query = PermissionQuery(permission, scope, target_id)
        snapshot = await self.snapshot(member_id, now=now)
        decision = resolve(snapshot, query.permission, query.scope, query.target_id, now=now)
        if not decision.granted:
            logger.debug(
                "rbac.check.denied",
                extra=log_context(
                    server_id=snapshot.server_id,
                    member_id=snapshot.member_id,
                    permission=query.permission,
                    scope=query.scope,
                    target_id=query.target_id,
                    reason=decision.reason,
                ),
            )
        return decision

    async def check_many(
        self,
        member_id: IdLike,
        queries: Iterable[QueryLike],
        *,
        now: datetime | None = None,
    ) -> dict[PermissionQuery, Decision]:
        """Resolve a batch of queries against a single snapshot."""

        normalized = [as_query(query) for query in queries]
        moment = ensure_utc(now) if now is not None else utc_now()
        snapshot = await self.snapshot(member_id, now=moment)
        decisions = resolve_many(snapshot, normalized, now=moment)
        return dict(zip(normalized, decisions))

    async def require(
        self,
        member_id: IdLike,
        permission: PermissionType | str,
        scope: PermissionScope | str = PermissionScope.SERVER,
        target_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Decision:
        decision = await self.check(member_id, permission, scope, target_id, now=now)
        if not decision.granted:
            query = PermissionQuery(permission, scope, target_id)
            logger.info(
                "rbac.require.denied",
                extra=log_context(
                    member_id=member_id,
                    permission=query.permission,
                    scope=query.scope,
                    target_id=query.target_id,
                ),
            )
            raise PermissionDeniedError(
                query.permission.value,
                scope=query.scope.value,
                target_id=query.target_id,
                reason=decision.reason.value,
            )
        return decision

    async def effective_permissions(
        self,
        member_id: IdLike,
        scope: PermissionScope | str = PermissionScope.SERVER,
        target_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> frozenset[PermissionType]:
        snapshot = await self.snapshot(member_id, now=now)
        return effective_permissions(snapshot, scope, target_id, now=now)

    # -- Hierarchy ---------------------------------------------------------
    async def can_manage(
        self,
        actor_member_id: IdLike,
        target_member_id: IdLike,
        action: ModerationAction | str,
        *,
        now: datetime | None = None,
    ) -> bool:
        moment = ensure_utc(now) if now is not None else utc_now()
        actor = await self.snapshot(actor_member_id, now=moment)
        target = await self.snapshot(target_member_id, now=moment)
        allowed = hierarchy.can_manage(actor, target, action, now=moment)
        if not allowed:
            logger.debug(
                "rbac.manage.denied",
                extra=log_context(
                    server_id=actor.server_id,
                    member_id=target.member_id,
                    actor_id=actor.member_id,
                    action=action,
                ),
            )
        return allowed

    async def require_manage(
        self,
        actor_member_id: IdLike,
        target_member_id: IdLike,
        action: ModerationAction | str,
        *,
        now: datetime | None = None,
    ) -> None:
        if not await self.can_manage(actor_member_id, target_member_id, action, now=now):
            permission = hierarchy.required_permission(action)
            logger.info(
                "rbac.require_manage.denied",
                extra=log_context(
                    member_id=target_member_id,
                    actor_id=actor_member_id,
                    action=action,
                ),
            )
            raise PermissionDeniedError(permission.value, reason=HIERARCHY_DENIAL)

    async def _role_position(self, role_id: IdLike) -> tuple[Role, int]:
        role_uuid = parse_uuid(role_id)
        role = None if role_uuid is None else await self._session.get(Role, role_uuid)
        if role is None:
            raise RoleNotFoundError("Role not found")
        return role, role.position

    async def can_assign_role(
        self,
        actor_member_id: IdLike,
        target_member_id: IdLike,
        role_id: IdLike,
        *,
        action: ModerationAction | str = ModerationAction.ASSIGN_ROLE,
        now: datetime | None = None,
    ) -> bool:
        """Whether the actor may give (or, with ``REVOKE_ROLE``, take) the role."""

        role, position = await self._role_position(role_id)
        moment = ensure_utc(now) if now is not None else utc_now()
        actor = await self.snapshot(actor_member_id, now=moment)
        target = await self.snapshot(target_member_id, now=moment)
        if str(role.server_id) != target.server_id:
            return False
        return hierarchy.can_assign_role(actor, target, position, action=action, now=moment)

    async def can_edit_role(
        self,
        actor_member_id: IdLike,
        role_id: IdLike,
        *,
        now: datetime | None = None,
    ) -> bool:
        role, position = await self._role_position(role_id)
        actor = await self.snapshot(actor_member_id, now=now)
        if str(role.server_id) != actor.server_id:
            return False
        return hierarchy.can_edit_role(actor, position, now=now)


__all__ = ["HIERARCHY_DENIAL", "PermissionService"]
