"""Cross-cutting helpers shared across chat-rbac."""
