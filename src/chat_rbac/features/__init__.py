"""Feature packages built on the RBAC core."""
