"""Role hierarchy guard.

Answers "may this actor act on that member" from two snapshots. The guard
composes rank comparison with the resolution engine so a moderator needs both
seniority and the matching capability.
"""

from __future__ import annotations

from datetime import datetime

from chat_rbac.core.rbac.engine import resolve
from chat_rbac.core.rbac.policy import ACTION_PERMISSIONS
from chat_rbac.core.rbac.snapshot import MemberSnapshot, coerce_enum
from chat_rbac.core.rbac.types import ModerationAction, PermissionType


def rank(snapshot: MemberSnapshot) -> int:
    """Highest assigned role position; 0 when only the baseline role is held."""

    return snapshot.rank


def required_permission(action: ModerationAction | str) -> PermissionType:
    return ACTION_PERMISSIONS[coerce_enum(ModerationAction, action, field_name="action")]


def _same_member(actor: MemberSnapshot, target: MemberSnapshot) -> bool:
    return actor.member_id is not None and actor.member_id == target.member_id


def _cross_server(actor: MemberSnapshot, target: MemberSnapshot) -> bool:
    return (
        actor.server_id is not None
        and target.server_id is not None
        and actor.server_id != target.server_id
    )


def can_manage(
    actor: MemberSnapshot,
    target: MemberSnapshot,
    action: ModerationAction | str,
    *,
    now: datetime | None = None,
) -> bool:
    """Return ``True`` when ``actor`` may perform ``action`` on ``target``.

    The owner may act on anyone else. Everybody else needs a strictly higher
    rank than the target and the action's permission at server scope. Nobody
    acts on the owner, on themselves, or across servers.
    """

    permission = required_permission(action)
    if _cross_server(actor, target) or _same_member(actor, target):
        return False
    if target.is_owner:
        return False
    if actor.is_owner:
        return True
    if actor.rank <= target.rank:
        return False
    return resolve(actor, permission, now=now).granted


def can_assign_role(
    actor: MemberSnapshot,
    target: MemberSnapshot,
    role_position: int,
    *,
    action: ModerationAction | str = ModerationAction.ASSIGN_ROLE,
    now: datetime | None = None,
) -> bool:
    """``can_manage`` plus the escalation guard on the role being handed out."""

    if not can_manage(actor, target, action, now=now):
        return False
    if actor.is_owner:
        return True
    return role_position < actor.rank


def can_edit_role(
    actor: MemberSnapshot,
    role_position: int,
    *,
    now: datetime | None = None,
) -> bool:
    """Editing, deleting or moving a role needs MANAGE_ROLES and seniority over it."""

    if actor.is_owner:
        return True
    if role_position >= actor.rank:
        return False
    return resolve(actor, PermissionType.MANAGE_ROLES, now=now).granted


__all__ = [
    "can_assign_role",
    "can_edit_role",
    "can_manage",
    "rank",
    "required_permission",
]
