# clinic_core/audit/admin.py
from django.contrib import admin

from clinic_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    """Browse-only: the trail cannot be edited from the admin site."""
    list_display = ("occurred_at", "event_code", "actor_user", "entity_type", "entity_id")
    list_filter = ("event_code", "entity_type")
    list_select_related = ("actor_user",)
    search_fields = ("event_code", "actor_user__username", "metadata")
    date_hierarchy = "occurred_at"
    ordering = ("-occurred_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
