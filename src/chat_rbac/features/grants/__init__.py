"""Grant store: read access to roles, grants and overrides."""

from .store import GrantStore

__all__ = ["GrantStore"]
