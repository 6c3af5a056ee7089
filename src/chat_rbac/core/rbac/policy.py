"""Static RBAC policy definitions (legacy tables, action map, specificity)."""

from __future__ import annotations

from chat_rbac.core.rbac.types import (
    LegacyRole,
    ModerationAction,
    PermissionScope,
    PermissionType,
)

BASELINE_ROLE_POSITION = 0

_P = PermissionType

# Fixed permission sets for members of servers that never adopted roles.
# ADMIN is absent on purpose: it is handled as an implicit administrator.
LEGACY_ROLE_PERMISSIONS: dict[LegacyRole, frozenset[PermissionType]] = {
    LegacyRole.GUEST: frozenset(
        {
            _P.VIEW_CHANNELS,
            _P.SEND_MESSAGES,
            _P.CONNECT,
            _P.SPEAK,
            _P.REQUEST_TO_SPEAK,
        }
    ),
    LegacyRole.MODERATOR: frozenset(
        {
            _P.VIEW_CHANNELS,
            _P.SEND_MESSAGES,
            _P.MANAGE_MESSAGES,
            _P.CONNECT,
            _P.SPEAK,
            _P.MUTE_MEMBERS,
            _P.DEAFEN_MEMBERS,
            _P.MOVE_MEMBERS,
            _P.REQUEST_TO_SPEAK,
            _P.MANAGE_STAGE,
            _P.MANAGE_CHANNELS,
        }
    ),
}

# Capability an actor needs before the hierarchy guard lets them act.
ACTION_PERMISSIONS: dict[ModerationAction, PermissionType] = {
    ModerationAction.KICK: _P.KICK_MEMBERS,
    ModerationAction.BAN: _P.BAN_MEMBERS,
    ModerationAction.TIMEOUT: _P.TIMEOUT_MEMBERS,
    ModerationAction.MANAGE_ROLES: _P.MANAGE_ROLES,
    ModerationAction.ASSIGN_ROLE: _P.MANAGE_ROLES,
    ModerationAction.REVOKE_ROLE: _P.MANAGE_ROLES,
    ModerationAction.MANAGE_NICKNAMES: _P.MANAGE_NICKNAMES,
    ModerationAction.MUTE: _P.MUTE_MEMBERS,
    ModerationAction.DEAFEN: _P.DEAFEN_MEMBERS,
    ModerationAction.MOVE: _P.MOVE_MEMBERS,
}

SCOPE_SPECIFICITY: dict[PermissionScope, int] = {
    PermissionScope.SERVER: 0,
    PermissionScope.CHANNEL: 1,
    PermissionScope.CATEGORY: 1,
}

# Seed grants for the baseline role when a server opts in.
DEFAULT_BASELINE_PERMISSIONS: tuple[PermissionType, ...] = (
    _P.VIEW_CHANNELS,
    _P.SEND_MESSAGES,
    _P.READ_MESSAGE_HISTORY,
    _P.CONNECT,
    _P.SPEAK,
    _P.ADD_REACTIONS,
)

__all__ = [
    "ACTION_PERMISSIONS",
    "BASELINE_ROLE_POSITION",
    "DEFAULT_BASELINE_PERMISSIONS",
    "LEGACY_ROLE_PERMISSIONS",
    "SCOPE_SPECIFICITY",
]
