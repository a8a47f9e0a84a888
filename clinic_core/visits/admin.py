# clinic_core/visits/admin.py
from django.contrib import admin

from clinic_core.visits.models import PatientVisit


@admin.register(PatientVisit)
class PatientVisitAdmin(admin.ModelAdmin):
    list_display = (
        "patient_number",
        "name",
        "phone",
        "date_key",
        "status",
        "registered_by",
        "timestamp",
    )
    list_filter = ("date_key", "status", "gender")
    search_fields = ("name", "phone")
    readonly_fields = ("patient_number", "date_key", "timestamp", "created_at", "updated_at")
    ordering = ("-date_key", "patient_number")
