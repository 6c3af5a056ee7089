"""Central exports for chat-rbac SQLAlchemy models."""

from .audit import AuditAction, AuditTargetType, PermissionAuditLog
from .rbac import MemberOverride, MemberRoleAssignment, Role, RoleGrant
from .server import Category, Channel, Member, Server

__all__ = [
    "AuditAction",
    "AuditTargetType",
    "Category",
    "Channel",
    "Member",
    "MemberOverride",
    "MemberRoleAssignment",
    "PermissionAuditLog",
    "Role",
    "RoleGrant",
    "Server",
]
