"""FastAPI dependencies that bridge HTTP requests to permission checks.

The acting member is always explicit: it comes from a path parameter or the
``X-Member-Id`` header, never from ambient session state.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chat_rbac.core.rbac.engine import Decision
from chat_rbac.core.rbac.errors import MemberNotFoundError, PermissionContractError
from chat_rbac.core.rbac.snapshot import coerce_enum
from chat_rbac.core.rbac.types import ModerationAction, PermissionScope, PermissionType
from chat_rbac.db import get_db_session
from chat_rbac.features.permissions.service import PermissionService

MEMBER_HEADER = "X-Member-Id"

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]

PermissionDependency = Callable[..., Awaitable[Decision]]
ManageDependency = Callable[..., Awaitable[None]]


def get_permission_service(db: SessionDep) -> PermissionService:
    return PermissionService(session=db)


PermissionServiceDep = Annotated[PermissionService, Depends(get_permission_service)]


def _member_from_request(request: Request, member_param: str | None) -> str:
    candidate = request.path_params.get(member_param) if member_param else None
    if candidate is None:
        candidate = request.headers.get(MEMBER_HEADER)
    if not candidate:
        raise MemberNotFoundError(None)
    return str(candidate)


def require_permission(
    permission: PermissionType | str,
    *,
    scope: PermissionScope | str = PermissionScope.SERVER,
    target_param: str | None = None,
    member_param: str | None = "member_id",
) -> PermissionDependency:
    """Return a dependency enforcing ``permission`` for the acting member.

    For CHANNEL/CATEGORY scope the target id is read from the ``target_param``
    path parameter.
    """

    permission_key = coerce_enum(PermissionType, permission, field_name="permission")
    scope_value = coerce_enum(PermissionScope, scope, field_name="scope")
    if scope_value != PermissionScope.SERVER and not target_param:
        raise PermissionContractError(f"{scope_value.value} scope requires target_param")

    async def dependency(request: Request, service: PermissionServiceDep) -> Decision:
        member_id = _member_from_request(request, member_param)
        target_id = None
        if scope_value != PermissionScope.SERVER:
            target_id = request.path_params.get(target_param) if target_param else None
        return await service.require(
            member_id,
            permission_key,
            scope_value,
            target_id,
        )

    return dependency


def require_manage(
    action: ModerationAction | str,
    *,
    target_param: str = "target_member_id",
    member_param: str | None = "member_id",
) -> ManageDependency:
    """Return a dependency enforcing the hierarchy guard for ``action``."""

    async def dependency(request: Request, service: PermissionServiceDep) -> None:
        actor_id = _member_from_request(request, member_param)
        target_id = request.path_params.get(target_param)
        if target_id is None:
            raise MemberNotFoundError(None)
        await service.require_manage(actor_id, target_id, action)

    return dependency


__all__ = [
    "MEMBER_HEADER",
    "PermissionServiceDep",
    "SessionDep",
    "get_permission_service",
    "require_manage",
    "require_permission",
]
