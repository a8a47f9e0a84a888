# clinic_core/visits/selectors.py
from __future__ import annotations

from datetime import date
from typing import Iterable
from uuid import UUID

from django.db.models import CharField, Q, QuerySet
from django.db.models.functions import Cast
from django.utils import timezone

from clinic_core.visits.models import PatientVisit, VisitStatus


def today_date_key() -> date:
    """Calendar day in the clinic's time zone (settings.TIME_ZONE)."""
    return timezone.localdate()


def get_visit(*, visit_id: UUID) -> PatientVisit:
    return PatientVisit.objects.get(id=visit_id)


def list_visits(
    *,
    date_key: date | None = None,
    start: date | None = None,
    end: date | None = None,
) -> QuerySet[PatientVisit]:
    qs = PatientVisit.objects.all()

    if date_key is not None:
        qs = qs.filter(date_key=date_key)
    if start is not None:
        qs = qs.filter(date_key__gte=start)
    if end is not None:
        qs = qs.filter(date_key__lte=end)

    return qs.order_by("date_key", "patient_number", "timestamp")


def search_visits(qs: QuerySet[PatientVisit], q: str | None) -> QuerySet[PatientVisit]:
    """
    Match on name (case-insensitive), phone substring or patient number substring.
    """
    qv = (q or "").strip()
    if not qv:
        return qs

    qs = qs.annotate(number_text=Cast("patient_number", output_field=CharField()))
    return qs.filter(
        Q(name__icontains=qv)
        | Q(phone__contains=qv)
        | Q(number_text__contains=qv)
    )


def filter_by_status(qs: QuerySet[PatientVisit], status: str | None) -> QuerySet[PatientVisit]:
    if status == VisitStatus.COMPLETED:
        return qs.filter(completed=True)
    if status == VisitStatus.PENDING:
        return qs.filter(completed=False)
    return qs


def count_for_day(*, date_key: date) -> int:
    return PatientVisit.objects.filter(date_key=date_key).count()


def day_stats(visits: Iterable[PatientVisit]) -> dict:
    total = 0
    completed = 0
    for v in visits:
        total += 1
        completed += 1 if v.completed else 0
    return {"total": total, "completed": completed, "pending": total - completed}
