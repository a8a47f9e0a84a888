# clinic_core/tests/helpers.py
from datetime import date, datetime, time

from django.utils import timezone

from clinic_core.visits.models import PatientVisit


def make_visit(*, date_key: date, patient_number: int, hour: int = 10, **fields) -> PatientVisit:
    """
    Write a visit directly, bypassing the allocator.
    `hour` is the clinic-local hour of registration.
    """
    defaults = {
        "name": f"Patient {patient_number}",
        "age": 30,
        "phone": "9876543210",
        "weight": 70.0,
        "gender": "male",
    }
    defaults.update(fields)
    ts = timezone.make_aware(datetime.combine(date_key, time(hour=hour)))
    return PatientVisit.objects.create(
        date_key=date_key,
        patient_number=patient_number,
        timestamp=ts,
        **defaults,
    )
