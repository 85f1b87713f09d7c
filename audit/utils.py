"""
Helpers for writing audit log entries.
"""

from typing import Optional

from .models import AuditLog


def log_event(
    action: str,
    module: str,
    description: str = "",
    actor=None,
    target_type: str = "",
    target_id: str = "",
    ip_address: str = "",
    user_agent: str = "",
    properties: Optional[dict] = None,
) -> AuditLog:
    """Create an audit log entry."""
    return AuditLog.objects.create(
        actor=actor if getattr(actor, "is_authenticated", False) else None,
        action=action,
        module=module,
        description=description[:255],
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else "",
        ip_address=ip_address or "",
        user_agent=(user_agent or "")[:255],
        properties=properties or {},
    )
