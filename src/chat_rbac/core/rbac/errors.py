"""Shared permission error types."""

from __future__ import annotations

from typing import Any


class PermissionContractError(ValueError):
    """Raised when a caller passes a malformed permission, scope or target.

    This signals a programming error in the caller, never a user-facing
    denial.
    """


class MemberNotFoundError(LookupError):
    """Raised when no snapshot can be assembled for a member."""

    def __init__(self, member_id: Any) -> None:
        self.member_id = member_id
        if member_id is None:
            super().__init__("Acting member was not specified")
        else:
            super().__init__(f"Member '{member_id}' not found")


class PermissionDeniedError(Exception):
    """Raised when a member lacks a required permission."""

    def __init__(
        self,
        permission_key: str,
        *,
        scope: str | None = None,
        target_id: str | None = None,
        reason: str | None = None,
    ) -> None:
        self.permission_key = permission_key
        self.scope = scope
        self.target_id = target_id
        self.reason = reason
        msg = f"Permission '{permission_key}' denied"
        if scope and target_id:
            msg = f"{msg} for {scope.lower()} '{target_id}'"
        super().__init__(msg)


__all__ = [
    "MemberNotFoundError",
    "PermissionContractError",
    "PermissionDeniedError",
]
