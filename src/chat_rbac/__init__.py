"""chat-rbac: permission resolution for chat servers."""

__version__ = "0.1.0"
