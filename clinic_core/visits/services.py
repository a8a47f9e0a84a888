# clinic_core/visits/services.py
from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from django.db import DatabaseError, transaction
from django.utils import timezone

from clinic_core.audit.services import AuditCode, AuditService
from clinic_core.visits.models import PatientVisit, VisitStatus
from clinic_core.visits.numbering import DailySequenceAllocator
from clinic_core.visits.selectors import count_for_day, today_date_key

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"name", "age", "phone", "weight", "temperature", "gender", "additional_info"}


def _observed_count(date_key: date) -> int | None:
    """
    Visits already stored for the day, or None when the count cannot be read.
    Runs in its own savepoint so the allocator can still query afterwards.
    """
    try:
        with transaction.atomic():
            return count_for_day(date_key=date_key)
    except DatabaseError as exc:
        logger.warning("Could not count visits for %s, allocating without it: %s", date_key, exc)
        return None


class VisitService:
    @staticmethod
    @transaction.atomic
    def register_visit(
        *,
        actor_user_id: int | None,
        name: str,
        age: int,
        phone: str,
        weight: float,
        temperature: float | None = None,
        gender: str = "",
        additional_info: str = "",
        date_key: date | None = None,
        allocator: DailySequenceAllocator | None = None,
    ) -> PatientVisit:
        """
        Allocate today's next number, then write the visit.

        The number is read and written in two separate steps without locking.
        AllocationFailed propagates and nothing is written.
        """
        date_key = date_key or today_date_key()
        allocator = allocator or DailySequenceAllocator()

        observed = _observed_count(date_key)
        patient_number = allocator.next_patient_number(date_key, observed_count=observed)

        visit = PatientVisit.objects.create(
            patient_number=patient_number,
            date_key=date_key,
            timestamp=timezone.now(),
            status=VisitStatus.PENDING,
            completed=False,
            name=name,
            age=age,
            phone=phone,
            weight=weight,
            temperature=temperature,
            gender=gender or "",
            additional_info=additional_info or "",
            registered_by_id=actor_user_id,
        )

        AuditService.log_visit(
            AuditCode.VISIT_REGISTERED,
            visit_id=visit.id,
            actor_user_id=actor_user_id,
            date_key=date_key.isoformat(),
            patient_number=patient_number,
        )
        logger.info("Registered visit #%s for %s", patient_number, date_key)
        return visit

    @staticmethod
    @transaction.atomic
    def update_visit(
        *,
        actor_user_id: int | None,
        visit_id: UUID,
        data: dict,
    ) -> PatientVisit:
        visit = PatientVisit.objects.select_for_update().get(id=visit_id)

        # date_key / patient_number / timestamp are never editable
        updates = {k: v for k, v in (data or {}).items() if k in EDITABLE_FIELDS}

        for k, v in updates.items():
            setattr(visit, k, v)
        visit.save()

        AuditService.log_visit(
            AuditCode.VISIT_UPDATED,
            visit_id=visit.id,
            actor_user_id=actor_user_id,
            updated_fields=sorted(updates),
        )
        return visit

    @staticmethod
    @transaction.atomic
    def set_completed(
        *,
        actor_user_id: int | None,
        visit_id: UUID,
        completed: bool,
    ) -> PatientVisit:
        visit = PatientVisit.objects.select_for_update().get(id=visit_id)

        visit.completed = bool(completed)
        visit.status = VisitStatus.COMPLETED if visit.completed else VisitStatus.PENDING
        visit.save(update_fields=["completed", "status", "updated_at"])

        AuditService.log_visit(
            AuditCode.VISIT_STATUS_CHANGED,
            visit_id=visit.id,
            actor_user_id=actor_user_id,
            status=visit.status,
        )
        return visit

    @staticmethod
    @transaction.atomic
    def delete_visit(
        *,
        actor_user_id: int | None,
        visit_id: UUID,
    ) -> None:
        visit = PatientVisit.objects.get(id=visit_id)
        metadata = {
            "date_key": visit.date_key.isoformat(),
            "patient_number": visit.patient_number,
            "name": visit.name,
        }
        visit.delete()

        AuditService.log_visit(AuditCode.VISIT_DELETED, visit_id=visit_id, actor_user_id=actor_user_id, **metadata)
        logger.info("Deleted visit #%s for %s", metadata["patient_number"], metadata["date_key"])
