"""
Admin configuration for audit logs.
"""

from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ["action", "module", "actor", "ip_address", "created_at"]
    list_filter = ["module", "action", "created_at"]
    search_fields = ["action", "description", "target_id", "actor__email"]
    readonly_fields = [field.name for field in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
