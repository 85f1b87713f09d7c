"""
Admin configuration for one-time passcodes.
"""

from django.contrib import admin

from .models import OtpCode


@admin.register(OtpCode)
class OtpCodeAdmin(admin.ModelAdmin):
    list_display = ["user", "purpose", "action", "created_at", "expires_at", "consumed_at", "superseded_at"]
    list_filter = ["purpose", "action", "created_at"]
    search_fields = ["user__email", "action", "ip_address"]
    readonly_fields = [field.name for field in OtpCode._meta.fields]
    exclude = ["code_hash"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
