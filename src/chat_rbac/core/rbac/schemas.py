"""JSON representations of snapshots, decisions and the catalog."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from chat_rbac.common.schema import BaseSchema
from chat_rbac.core.rbac.engine import Decision
from chat_rbac.core.rbac.registry import (
    CATALOG_VERSION,
    PERMISSION_GROUPS,
    PERMISSION_REGISTRY,
)
from chat_rbac.core.rbac.snapshot import (
    MemberSnapshot,
    PermissionGrant,
    PermissionOverride,
    RoleSnapshot,
)
from chat_rbac.core.rbac.types import (
    DecisionReason,
    GrantType,
    LegacyRole,
    PermissionDef,
    PermissionGroup,
    PermissionScope,
    PermissionType,
)


class GrantModel(BaseSchema):
    permission: PermissionType
    grant_type: GrantType
    scope: PermissionScope = PermissionScope.SERVER
    target_id: str | None = None

    @classmethod
    def from_grant(cls, grant: PermissionGrant) -> GrantModel:
        return cls(
            permission=grant.permission,
            grant_type=grant.grant_type,
            scope=grant.scope,
            target_id=grant.target_id,
        )

    def to_grant(self) -> PermissionGrant:
        return PermissionGrant(
            permission=self.permission,
            grant_type=self.grant_type,
            scope=self.scope,
            target_id=self.target_id,
        )


class OverrideModel(GrantModel):
    id: str | None = None
    assigned_by: str | None = None
    reason: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_override(cls, override: PermissionOverride) -> OverrideModel:
        return cls(
            id=override.override_id,
            permission=override.permission,
            grant_type=override.grant_type,
            scope=override.scope,
            target_id=override.target_id,
            assigned_by=override.assigned_by,
            reason=override.reason,
            expires_at=override.expires_at,
            created_at=override.created_at,
        )

    def to_override(self) -> PermissionOverride:
        return PermissionOverride(
            permission=self.permission,
            grant_type=self.grant_type,
            scope=self.scope,
            target_id=self.target_id,
            override_id=self.id,
            assigned_by=self.assigned_by,
            reason=self.reason,
            expires_at=self.expires_at,
            created_at=self.created_at,
        )


class RoleModel(BaseSchema):
    id: str | None = None
    name: str = ""
    position: int = Field(ge=0)
    grants: list[GrantModel] = Field(default_factory=list)

    @classmethod
    def from_role(cls, role: RoleSnapshot) -> RoleModel:
        return cls(
            id=role.role_id,
            name=role.name,
            position=role.position,
            grants=[GrantModel.from_grant(grant) for grant in role.grants],
        )

    def to_role(self) -> RoleSnapshot:
        return RoleSnapshot(
            position=self.position,
            grants=tuple(grant.to_grant() for grant in self.grants),
            role_id=self.id,
            name=self.name,
        )


class MemberSnapshotModel(BaseSchema):
    """Serialized member snapshot; the CLI reads and writes this shape."""

    member_id: str | None = None
    server_id: str | None = None
    is_owner: bool = False
    legacy_role: LegacyRole = LegacyRole.GUEST
    roles: list[RoleModel] = Field(default_factory=list)
    overrides: list[OverrideModel] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: MemberSnapshot) -> MemberSnapshotModel:
        return cls(
            member_id=snapshot.member_id,
            server_id=snapshot.server_id,
            is_owner=snapshot.is_owner,
            legacy_role=snapshot.legacy_role,
            roles=[RoleModel.from_role(role) for role in snapshot.roles],
            overrides=[OverrideModel.from_override(item) for item in snapshot.overrides],
        )

    def to_snapshot(self) -> MemberSnapshot:
        return MemberSnapshot(
            member_id=self.member_id,
            server_id=self.server_id,
            is_owner=self.is_owner,
            legacy_role=self.legacy_role,
            roles=tuple(role.to_role() for role in self.roles),
            overrides=tuple(item.to_override() for item in self.overrides),
        )


class DecisionOut(BaseSchema):
    permission: PermissionType
    scope: PermissionScope = PermissionScope.SERVER
    target_id: str | None = None
    granted: bool
    reason: DecisionReason
    source: str | None = None

    @classmethod
    def from_decision(
        cls,
        decision: Decision,
        *,
        permission: PermissionType | str,
        scope: PermissionScope | str = PermissionScope.SERVER,
        target_id: str | None = None,
    ) -> DecisionOut:
        return cls(
            permission=permission,
            scope=scope,
            target_id=target_id,
            granted=decision.granted,
            reason=decision.reason,
            source=decision.source,
        )


class PermissionOut(BaseSchema):
    key: PermissionType
    group: PermissionGroup
    label: str
    description: str

    @classmethod
    def from_definition(cls, definition: PermissionDef) -> PermissionOut:
        return cls(
            key=definition.key,
            group=definition.group,
            label=definition.label,
            description=definition.description,
        )


class CatalogOut(BaseSchema):
    version: str = CATALOG_VERSION
    groups: dict[str, list[PermissionOut]] = Field(default_factory=dict)

    @classmethod
    def build(cls) -> CatalogOut:
        return cls(
            groups={
                group.value: [
                    PermissionOut.from_definition(PERMISSION_REGISTRY[key]) for key in keys
                ]
                for group, keys in PERMISSION_GROUPS.items()
            }
        )


__all__ = [
    "CatalogOut",
    "DecisionOut",
    "GrantModel",
    "MemberSnapshotModel",
    "OverrideModel",
    "PermissionOut",
    "RoleModel",
]
