"""Exception handlers that translate permission errors to HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

from chat_rbac.common.schema import ErrorMessage
from chat_rbac.core.rbac.errors import (
    MemberNotFoundError,
    PermissionContractError,
    PermissionDeniedError,
)
from chat_rbac.features.roles.service import RoleNotFoundError, ServerNotFoundError


def _handle_permission_error(_request, exc: PermissionDeniedError) -> JSONResponse:
    """Translate permission denials into HTTP 403 responses."""

    detail = {
        "error": "forbidden",
        "permission": exc.permission_key,
        "scope": exc.scope,
        "target_id": exc.target_id,
        "reason": exc.reason,
    }
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": detail},
    )


def _handle_not_found(_request, exc: LookupError | ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorMessage(detail=str(exc) or "Not found").model_dump(),
    )


def _handle_contract_error(_request, exc: PermissionContractError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorMessage(detail=str(exc)).model_dump(),
    )


def register_permission_exception_handlers(app: FastAPI) -> None:
    """Attach RBAC handlers to the FastAPI app."""

    app.add_exception_handler(PermissionDeniedError, _handle_permission_error)
    app.add_exception_handler(MemberNotFoundError, _handle_not_found)
    app.add_exception_handler(RoleNotFoundError, _handle_not_found)
    app.add_exception_handler(ServerNotFoundError, _handle_not_found)
    app.add_exception_handler(PermissionContractError, _handle_contract_error)


__all__ = ["register_permission_exception_handlers"]
