"""Permission check feature package."""

from .service import HIERARCHY_DENIAL, PermissionService

__all__ = ["HIERARCHY_DENIAL", "PermissionService"]
