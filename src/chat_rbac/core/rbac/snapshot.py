"""Immutable member snapshots consumed by the resolution engine.

A snapshot is assembled once per request by the grant store and can then be
queried any number of times without touching storage. Every value is frozen
so snapshots may be shared freely between threads and tasks.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from chat_rbac.common.clock import ensure_utc
from chat_rbac.core.rbac.errors import PermissionContractError
from chat_rbac.core.rbac.policy import BASELINE_ROLE_POSITION
from chat_rbac.core.rbac.types import GrantType, LegacyRole, PermissionScope, PermissionType

_E = TypeVar("_E", bound=enum.Enum)


def coerce_enum(enum_cls: type[_E], value: Any, *, field_name: str) -> _E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        raise PermissionContractError(
            f"{field_name} '{value}' is not a valid {enum_cls.__name__}"
        ) from None


def validate_scope_target(scope: PermissionScope, target_id: str | None) -> None:
    """Reject scope/target pairings that can never match anything."""

    if scope == PermissionScope.SERVER:
        if target_id is not None:
            raise PermissionContractError("SERVER scope does not take a target_id")
        return
    if not target_id:
        raise PermissionContractError(f"{scope.value} scope requires a target_id")


def normalize_target(value: Any) -> str | None:
    if value is None:
        return None
    candidate = str(value).strip()
    return candidate or None


@dataclass(frozen=True)
class PermissionGrant:
    """ALLOW/DENY rule for one permission attached to a role."""

    permission: PermissionType
    grant_type: GrantType
    scope: PermissionScope = PermissionScope.SERVER
    target_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "permission",
            coerce_enum(PermissionType, self.permission, field_name="permission"),
        )
        object.__setattr__(
            self,
            "grant_type",
            coerce_enum(GrantType, self.grant_type, field_name="grant_type"),
        )
        object.__setattr__(
            self, "scope", coerce_enum(PermissionScope, self.scope, field_name="scope")
        )
        object.__setattr__(self, "target_id", normalize_target(self.target_id))
        validate_scope_target(self.scope, self.target_id)

    @property
    def key(self) -> tuple[PermissionType, PermissionScope, str | None]:
        return (self.permission, self.scope, self.target_id)

    def matches(
        self,
        permission: PermissionType,
        scope: PermissionScope,
        target_id: str | None,
    ) -> bool:
        return (
            self.permission == permission
            and self.scope == scope
            and self.target_id == target_id
        )


@dataclass(frozen=True)
class PermissionOverride:
    """Member-specific grant, optionally time-bounded."""

    permission: PermissionType
    grant_type: GrantType
    scope: PermissionScope = PermissionScope.SERVER
    target_id: str | None = None
    override_id: str | None = None
    assigned_by: str | None = None
    reason: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "permission",
            coerce_enum(PermissionType, self.permission, field_name="permission"),
        )
        object.__setattr__(
            self,
            "grant_type",
            coerce_enum(GrantType, self.grant_type, field_name="grant_type"),
        )
        object.__setattr__(
            self, "scope", coerce_enum(PermissionScope, self.scope, field_name="scope")
        )
        object.__setattr__(self, "target_id", normalize_target(self.target_id))
        validate_scope_target(self.scope, self.target_id)
        if self.expires_at is not None:
            object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
        if self.created_at is not None:
            object.__setattr__(self, "created_at", ensure_utc(self.created_at))

    @property
    def key(self) -> tuple[PermissionType, PermissionScope, str | None]:
        return (self.permission, self.scope, self.target_id)

    def is_active(self, now: datetime) -> bool:
        """An override stops counting the instant it expires."""

        if self.expires_at is None:
            return True
        return self.expires_at > ensure_utc(now)


@dataclass(frozen=True)
class RoleSnapshot:
    """A role held by the member, with its ordered grants."""

    position: int
    grants: tuple[PermissionGrant, ...] = ()
    role_id: str | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.position, bool) or not isinstance(self.position, int):
            raise PermissionContractError("Role position must be an integer")
        if self.position < BASELINE_ROLE_POSITION:
            raise PermissionContractError("Role position cannot be negative")
        object.__setattr__(self, "grants", tuple(self.grants))

    @property
    def is_baseline(self) -> bool:
        return self.position == BASELINE_ROLE_POSITION


@dataclass(frozen=True)
class MemberSnapshot:
    """Everything the engine needs to decide for one member of one server."""

    member_id: str | None = None
    server_id: str | None = None
    is_owner: bool = False
    legacy_role: LegacyRole = LegacyRole.GUEST
    roles: tuple[RoleSnapshot, ...] = ()
    overrides: tuple[PermissionOverride, ...] = ()
    _ordered_roles: tuple[RoleSnapshot, ...] = field(
        init=False, repr=False, compare=False, default=()
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "legacy_role",
            coerce_enum(LegacyRole, self.legacy_role, field_name="legacy_role"),
        )
        roles = tuple(self.roles)
        positions = [role.position for role in roles]
        if len(positions) != len(set(positions)):
            raise PermissionContractError("Role positions must be unique within a server")
        object.__setattr__(self, "roles", roles)
        object.__setattr__(self, "overrides", tuple(self.overrides))
        object.__setattr__(
            self,
            "_ordered_roles",
            tuple(sorted(roles, key=lambda role: role.position, reverse=True)),
        )

    @property
    def ordered_roles(self) -> tuple[RoleSnapshot, ...]:
        """Roles most senior first; the baseline role always comes last."""

        return self._ordered_roles

    @property
    def rank(self) -> int:
        return max((role.position for role in self.roles), default=BASELINE_ROLE_POSITION)

    def active_overrides(self, now: datetime) -> tuple[PermissionOverride, ...]:
        return tuple(override for override in self.overrides if override.is_active(now))


__all__ = [
    "MemberSnapshot",
    "PermissionGrant",
    "PermissionOverride",
    "RoleSnapshot",
    "coerce_enum",
    "normalize_target",
    "validate_scope_target",
]
