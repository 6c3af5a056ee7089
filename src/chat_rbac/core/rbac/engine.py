"""Permission resolution engine.

``resolve`` decides a single permission for a member snapshot by walking a
fixed precedence, first match wins:

1. server ownership,
2. member overrides (most specific scope, then most recent),
3. the ADMINISTRATOR role grant,
4. role grants, most senior role first, exact scope before SERVER scope,
5. the legacy member role table,
6. default deny.

The engine is pure: it never performs I/O, never mutates the snapshot and is
safe to call concurrently. Batch checks are repeated calls over one snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from chat_rbac.common.clock import ensure_utc, utc_now
from chat_rbac.core.rbac.policy import LEGACY_ROLE_PERMISSIONS, SCOPE_SPECIFICITY
from chat_rbac.core.rbac.registry import ALL_PERMISSIONS, PERMISSIONS
from chat_rbac.core.rbac.snapshot import (
    MemberSnapshot,
    PermissionGrant,
    PermissionOverride,
    RoleSnapshot,
    coerce_enum,
    normalize_target,
    validate_scope_target,
)
from chat_rbac.core.rbac.types import (
    DecisionReason,
    GrantType,
    LegacyRole,
    PermissionScope,
    PermissionType,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class Decision:
    """Outcome of a resolution."""

    granted: bool
    reason: DecisionReason
    source: str | None = None

    def __bool__(self) -> bool:
        return self.granted


@dataclass(frozen=True)
class PermissionQuery:
    """A permission requested in a scope (e.g. SEND_MESSAGES in channel X)."""

    permission: PermissionType
    scope: PermissionScope = PermissionScope.SERVER
    target_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "permission",
            coerce_enum(PermissionType, self.permission, field_name="permission"),
        )
        object.__setattr__(
            self, "scope", coerce_enum(PermissionScope, self.scope, field_name="scope")
        )
        object.__setattr__(self, "target_id", normalize_target(self.target_id))
        validate_scope_target(self.scope, self.target_id)


QueryLike = PermissionQuery | PermissionType | str | tuple


def as_query(value: QueryLike) -> PermissionQuery:
    if isinstance(value, PermissionQuery):
        return value
    if isinstance(value, tuple):
        return PermissionQuery(*value)
    return PermissionQuery(value)


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------


def _override_layer(
    overrides: Sequence[PermissionOverride],
    query: PermissionQuery,
    now: datetime,
) -> PermissionOverride | None:
    best: PermissionOverride | None = None
    best_key: tuple[int, datetime, int] | None = None
    for index, override in enumerate(overrides):
        if override.permission != query.permission or not override.is_active(now):
            continue
        if override.scope != PermissionScope.SERVER and (
            override.scope != query.scope or override.target_id != query.target_id
        ):
            continue
        # Later entries break exact ties so the pick never depends on luck.
        key = (SCOPE_SPECIFICITY[override.scope], override.created_at or _EPOCH, index)
        if best_key is None or key > best_key:
            best, best_key = override, key
    return best


def _administrator_role(roles: Iterable[RoleSnapshot]) -> RoleSnapshot | None:
    for role in roles:
        for grant in role.grants:
            if (
                grant.permission == PermissionType.ADMINISTRATOR
                and grant.grant_type == GrantType.ALLOW
                and grant.scope == PermissionScope.SERVER
            ):
                return role
    return None


def _pick(grants: list[PermissionGrant]) -> PermissionGrant:
    # Conflicting grants inside one role at one specificity: DENY wins.
    for grant in grants:
        if grant.grant_type == GrantType.DENY:
            return grant
    return grants[0]


def _match_in_role(role: RoleSnapshot, query: PermissionQuery) -> PermissionGrant | None:
    if query.scope != PermissionScope.SERVER:
        exact = [
            grant
            for grant in role.grants
            if grant.matches(query.permission, query.scope, query.target_id)
        ]
        if exact:
            return _pick(exact)
    server_wide = [
        grant
        for grant in role.grants
        if grant.matches(query.permission, PermissionScope.SERVER, None)
    ]
    if server_wide:
        return _pick(server_wide)
    return None


def _legacy_layer(legacy_role: LegacyRole, permission: PermissionType) -> bool:
    if legacy_role == LegacyRole.ADMIN:
        return True
    return permission in LEGACY_ROLE_PERMISSIONS.get(legacy_role, frozenset())


def _evaluate(snapshot: MemberSnapshot, query: PermissionQuery, now: datetime) -> Decision:
    if snapshot.is_owner:
        return Decision(granted=True, reason=DecisionReason.OWNER)

    override = _override_layer(snapshot.overrides, query, now)
    if override is not None:
        return Decision(
            granted=override.grant_type == GrantType.ALLOW,
            reason=DecisionReason.USER_OVERRIDE,
            source=override.override_id,
        )

    admin_role = _administrator_role(snapshot.roles)
    if admin_role is not None:
        return Decision(
            granted=True,
            reason=DecisionReason.ADMINISTRATOR,
            source=admin_role.role_id,
        )

    for role in snapshot.ordered_roles:
        grant = _match_in_role(role, query)
        if grant is not None:
            return Decision(
                granted=grant.grant_type == GrantType.ALLOW,
                reason=DecisionReason.ROLE,
                source=role.role_id,
            )

    if _legacy_layer(snapshot.legacy_role, query.permission):
        return Decision(
            granted=True,
            reason=DecisionReason.LEGACY,
            source=snapshot.legacy_role.value,
        )

    return Decision(granted=False, reason=DecisionReason.DENIED)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve(
    snapshot: MemberSnapshot,
    permission: PermissionType | str,
    scope: PermissionScope | str = PermissionScope.SERVER,
    target_id: str | None = None,
    *,
    now: datetime | None = None,
) -> Decision:
    """Decide whether ``snapshot`` holds ``permission`` in the given scope.

    Raises ``PermissionContractError`` for malformed queries (unknown
    permission, non-SERVER scope without a target, SERVER scope with one).
    """

    query = PermissionQuery(permission, scope, target_id)
    moment = ensure_utc(now) if now is not None else utc_now()
    return _evaluate(snapshot, query, moment)


def resolve_many(
    snapshot: MemberSnapshot,
    queries: Iterable[QueryLike],
    *,
    now: datetime | None = None,
) -> list[Decision]:
    """Resolve several queries against one snapshot at one instant."""

    moment = ensure_utc(now) if now is not None else utc_now()
    return [_evaluate(snapshot, as_query(query), moment) for query in queries]


def effective_permissions(
    snapshot: MemberSnapshot,
    scope: PermissionScope | str = PermissionScope.SERVER,
    target_id: str | None = None,
    *,
    now: datetime | None = None,
) -> frozenset[PermissionType]:
    """Return every catalog permission granted in the given context."""

    if snapshot.is_owner:
        return ALL_PERMISSIONS
    queries = [PermissionQuery(definition.key, scope, target_id) for definition in PERMISSIONS]
    decisions = resolve_many(snapshot, queries, now=now)
    return frozenset(
        query.permission for query, decision in zip(queries, decisions) if decision.granted
    )


__all__ = [
    "Decision",
    "PermissionQuery",
    "QueryLike",
    "as_query",
    "effective_permissions",
    "resolve",
    "resolve_many",
]
