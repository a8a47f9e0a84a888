# clinic_core/audit/selectors.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from django.db.models import Count, Max, Q, QuerySet

from clinic_core.audit.models import AuditEvent
from clinic_core.audit.services import AuditCode


def list_audit_events(
    *,
    entity_type: str | None = None,
    entity_id: UUID | None = None,
    event_code: str | None = None,
    actor_user_id: int | None = None,
    since: datetime | None = None,
) -> QuerySet[AuditEvent]:
    """Newest first, actor joined for display."""
    filters = {
        "entity_type": entity_type or None,
        "entity_id": entity_id or None,
        "event_code": event_code or None,
        "actor_user_id": actor_user_id,
        "occurred_at__gt": since,
    }
    qs = AuditEvent.objects.select_related("actor_user").filter(
        **{k: v for k, v in filters.items() if v is not None}
    )
    return qs.order_by("-occurred_at")


def count_events(*, since: datetime) -> int:
    return AuditEvent.objects.filter(occurred_at__gt=since).count()


def activity_by_actor(*, since: datetime) -> dict[str, dict]:
    """
    Per-username activity inside the window: total events, visits deleted
    and the latest event time.
    """
    rows = (
        AuditEvent.objects.filter(actor_user__isnull=False, occurred_at__gt=since)
        .values("actor_user__username")
        .annotate(
            total_activities=Count("id"),
            visits_deleted=Count("id", filter=Q(event_code=AuditCode.VISIT_DELETED)),
            last_activity=Max("occurred_at"),
        )
    )
    return {
        r["actor_user__username"]: {
            "total_activities": r["total_activities"],
            "visits_deleted": r["visits_deleted"],
            "last_activity": r["last_activity"],
        }
        for r in rows
    }
