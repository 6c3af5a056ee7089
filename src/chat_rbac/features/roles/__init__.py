"""Role mutation feature package."""

from .service import (
    AssignmentError,
    BaselineRoleError,
    RoleError,
    RoleNotFoundError,
    RoleService,
    RoleValidationError,
    ScopeIntegrityError,
    ServerNotFoundError,
)

__all__ = [
    "AssignmentError",
    "BaselineRoleError",
    "RoleError",
    "RoleNotFoundError",
    "RoleService",
    "RoleValidationError",
    "ScopeIntegrityError",
    "ServerNotFoundError",
]
