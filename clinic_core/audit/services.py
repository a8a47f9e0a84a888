# clinic_core/audit/services.py
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from django.db import transaction

from clinic_core.audit.models import AuditEvent


class AuditCode:
    VISIT_REGISTERED = "visit.registered"
    VISIT_UPDATED = "visit.updated"
    VISIT_STATUS_CHANGED = "visit.status_changed"
    VISIT_DELETED = "visit.deleted"
    VISITS_EXPORTED = "visits.exported"
    USER_LOGIN = "user.login"
    USER_LOGOUT = "user.logout"


class AuditService:
    """
    Single writer for the activity trail. Rows are never updated afterwards.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID | None,
        actor_user_id: int | None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        return AuditEvent.objects.create(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor_user_id,
            metadata=metadata or {},
        )

    @staticmethod
    def log_visit(event_code: str, *, visit_id: UUID | None, actor_user_id: int | None, **metadata) -> AuditEvent:
        return AuditService.log(
            event_code=event_code,
            entity_type="PatientVisit",
            entity_id=visit_id,
            actor_user_id=actor_user_id,
            metadata=metadata,
        )

    @staticmethod
    def log_user(event_code: str, *, user_id: int, **metadata) -> AuditEvent:
        return AuditService.log(
            event_code=event_code,
            entity_type="User",
            entity_id=None,
            actor_user_id=user_id,
            metadata=metadata,
        )
