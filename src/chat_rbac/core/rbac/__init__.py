"""Permission catalog, resolution engine and hierarchy guard."""

from .engine import Decision, PermissionQuery, effective_permissions, resolve, resolve_many
from .errors import MemberNotFoundError, PermissionContractError, PermissionDeniedError
from .hierarchy import can_assign_role, can_edit_role, can_manage, rank
from .registry import ALL_PERMISSIONS, CATALOG_VERSION, PERMISSION_REGISTRY
from .snapshot import MemberSnapshot, PermissionGrant, PermissionOverride, RoleSnapshot
from .types import (
    DecisionReason,
    GrantType,
    LegacyRole,
    ModerationAction,
    PermissionGroup,
    PermissionScope,
    PermissionType,
)

__all__ = [
    "ALL_PERMISSIONS",
    "CATALOG_VERSION",
    "PERMISSION_REGISTRY",
    "Decision",
    "DecisionReason",
    "GrantType",
    "LegacyRole",
    "MemberNotFoundError",
    "MemberSnapshot",
    "ModerationAction",
    "PermissionContractError",
    "PermissionDeniedError",
    "PermissionGrant",
    "PermissionGroup",
    "PermissionOverride",
    "PermissionQuery",
    "PermissionScope",
    "PermissionType",
    "RoleSnapshot",
    "can_assign_role",
    "can_edit_role",
    "can_manage",
    "effective_permissions",
    "rank",
    "resolve",
    "resolve_many",
]
