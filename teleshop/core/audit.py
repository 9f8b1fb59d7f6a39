"""Audit log for critical actions."""

from typing import Any

from teleshop.models.audit_log import AuditLog


async def log_event(
    actor: str | None,
    event_type: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append to audit_logs collection."""
    await AuditLog(
        actor=actor,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata or {},
    ).insert()


def admin_actor(username: str) -> str:
    return f"admin:{username}"
