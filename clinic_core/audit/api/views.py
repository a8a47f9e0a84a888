# clinic_core/audit/api/views.py
from __future__ import annotations

from uuid import UUID

from django.utils.dateparse import parse_datetime
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from clinic_core.audit.api.serializers import AuditEventSerializer
from clinic_core.audit.models import AuditEvent
from clinic_core.audit.selectors import list_audit_events
from clinic_core.common.permissions import AuditPermission

DEFAULT_LIMIT = 200
MAX_LIMIT = 500


def _param(name, type_, description):
    return OpenApiParameter(name=name, type=type_, location=OpenApiParameter.QUERY, required=False,
                            description=description)


def _parsed(params, name, parse, expected):
    raw = params.get(name)
    if not raw:
        return None
    try:
        value = parse(raw)
    except (TypeError, ValueError):
        value = None
    if value is None:
        raise ValidationError({name: f"Invalid {name} ({expected} expected)"})
    return value


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    Activity trail, newest first (admin only).
    """
    permission_classes = [AuditPermission]
    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            _param("event_code", OpenApiTypes.STR, "e.g. visit.registered, visit.deleted, user.login"),
            _param("entity_type", OpenApiTypes.STR, "e.g. PatientVisit"),
            _param("entity_id", OpenApiTypes.UUID, "Visit id."),
            _param("actor_user_id", OpenApiTypes.INT, "User who acted."),
            _param("since", OpenApiTypes.DATETIME, "Only events after this instant (ISO 8601)."),
            _param("limit", OpenApiTypes.INT, f"Max records (default {DEFAULT_LIMIT}, max {MAX_LIMIT})."),
        ],
    )
    def list(self, request):
        params = request.query_params

        qs = list_audit_events(
            event_code=params.get("event_code") or None,
            entity_type=params.get("entity_type") or None,
            entity_id=_parsed(params, "entity_id", lambda v: UUID(str(v)), "UUID"),
            actor_user_id=_parsed(params, "actor_user_id", int, "integer"),
            since=_parsed(params, "since", parse_datetime, "ISO 8601 datetime"),
        )

        limit = _parsed(params, "limit", int, "integer") or DEFAULT_LIMIT
        limit = max(1, min(limit, MAX_LIMIT))

        return Response(AuditEventSerializer(qs[:limit], many=True).data, status=status.HTTP_200_OK)
