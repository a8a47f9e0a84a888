# clinic_core/visits/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from clinic_core.common.models import UUIDModel


class VisitStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"


class Gender(models.TextChoices):
    UNSPECIFIED = "", "Not specified"
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"


class PatientVisit(UUIDModel):
    """
    One patient registration for a calendar day.

    patient_number restarts at 1 every date_key. There is no unique constraint
    on (date_key, patient_number): numbers come from a read-then-write
    allocation and two concurrent registrations can share a number.
    """
    patient_number = models.PositiveIntegerField()
    date_key = models.DateField(db_index=True)
    timestamp = models.DateTimeField(default=timezone.now)

    status = models.CharField(max_length=16, choices=VisitStatus.choices, default=VisitStatus.PENDING, db_index=True)
    completed = models.BooleanField(default=False)

    name = models.CharField(max_length=255)
    age = models.PositiveSmallIntegerField()
    phone = models.CharField(max_length=32)
    weight = models.FloatField()
    temperature = models.FloatField(null=True, blank=True)
    gender = models.CharField(max_length=16, choices=Gender.choices, blank=True, default=Gender.UNSPECIFIED)
    additional_info = models.TextField(blank=True, default="")

    registered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="registered_visits",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "visits_patient_visit"
        indexes = [
            # backs the ordered next-number query
            models.Index(fields=["date_key", "patient_number", "timestamp"], name="visit_day_number_idx"),
            models.Index(fields=["date_key", "completed"], name="visit_day_completed_idx"),
        ]

    def __str__(self) -> str:
        return f"#{self.patient_number} {self.name} ({self.date_key})"
