"""FastAPI adapter for permission checks."""

from .dependencies import (
    MEMBER_HEADER,
    PermissionServiceDep,
    get_permission_service,
    require_manage,
    require_permission,
)
from .errors import register_permission_exception_handlers
from .middleware import REQUEST_ID_HEADER, RequestContextMiddleware, register_request_context

__all__ = [
    "MEMBER_HEADER",
    "PermissionServiceDep",
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "get_permission_service",
    "register_permission_exception_handlers",
    "register_request_context",
    "require_manage",
    "require_permission",
]
