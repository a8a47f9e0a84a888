import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PatientVisit",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("patient_number", models.PositiveIntegerField()),
                ("date_key", models.DateField(db_index=True)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed")],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("completed", models.BooleanField(default=False)),
                ("name", models.CharField(max_length=255)),
                ("age", models.PositiveSmallIntegerField()),
                ("phone", models.CharField(max_length=32)),
                ("weight", models.FloatField()),
                ("temperature", models.FloatField(blank=True, null=True)),
                (
                    "gender",
                    models.CharField(
                        blank=True,
                        choices=[("", "Not specified"), ("male", "Male"), ("female", "Female"), ("other", "Other")],
                        default="",
                        max_length=16,
                    ),
                ),
                ("additional_info", models.TextField(blank=True, default="")),
                (
                    "registered_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registered_visits",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "visits_patient_visit",
                "indexes": [
                    models.Index(fields=["date_key", "patient_number", "timestamp"], name="visit_day_number_idx"),
                    models.Index(fields=["date_key", "completed"], name="visit_day_completed_idx"),
                ],
            },
        ),
    ]
