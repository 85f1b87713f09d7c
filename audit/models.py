"""
Persistent activity log entries.
"""

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """Append-only activity log for security-relevant events."""

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )
    action = models.CharField(max_length=100)
    module = models.CharField(max_length=50, db_index=True)
    description = models.CharField(max_length=255, blank=True, default="")
    target_type = models.CharField(max_length=50, blank=True, default="")
    target_id = models.CharField(max_length=100, blank=True, default="")
    ip_address = models.CharField(max_length=45, blank=True, default="")
    user_agent = models.CharField(max_length=255, blank=True, default="")
    properties = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "audit log"
        verbose_name_plural = "audit logs"
        db_table = "audit_log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action", "created_at"], name="audit_log_action_3f1c2e_idx"),
            models.Index(fields=["target_type", "target_id"], name="audit_log_target__8d0b4a_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.module}:{self.action} ({self.created_at:%Y-%m-%d %H:%M})"
