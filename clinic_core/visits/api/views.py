# clinic_core/visits/api/views.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError as DRFValidationError
from rest_framework.response import Response

from clinic_core.audit.services import AuditCode, AuditService
from clinic_core.common.api.exceptions import NumberingUnavailable
from clinic_core.common.api.pagination import paginate
from clinic_core.common.permissions import VisitPermission
from clinic_core.visits.api.filters import VisitFilter
from clinic_core.visits.api.serializers import (
    DayCountSerializer,
    NextNumberSerializer,
    VisitCreateSerializer,
    VisitSerializer,
    VisitStatusSerializer,
    VisitUpdateSerializer,
    WhatsAppLinkSerializer,
)
from clinic_core.visits.exports import CONTENT_TYPES, RENDERERS, XLSX, export_filename
from clinic_core.visits.messaging import render_visit_message, whatsapp_link
from clinic_core.visits.models import PatientVisit
from clinic_core.visits.numbering import AllocationFailed, DailySequenceAllocator
from clinic_core.visits.selectors import day_stats, get_visit, list_visits, today_date_key
from clinic_core.visits.services import VisitService

DATE_PARAM = OpenApiParameter(
    name="date",
    type=OpenApiTypes.DATE,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Calendar day (YYYY-MM-DD). Defaults to today in the clinic time zone.",
)


def _parse_date(raw: str | None, field_name: str = "date") -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        raise DRFValidationError({field_name: "Invalid date (YYYY-MM-DD expected)"})


def _actor_id(request) -> int | None:
    session = getattr(request, "clinic_session", None)
    if session is not None:
        return session.user_id
    return getattr(request.user, "id", None)


class VisitViewSet(viewsets.ViewSet):
    permission_classes = [VisitPermission]
    serializer_class = VisitSerializer
    queryset = PatientVisit.objects.none()

    def get_object(self, request, pk) -> PatientVisit:
        try:
            return get_visit(visit_id=UUID(str(pk)))
        except (ValueError, PatientVisit.DoesNotExist):
            raise NotFound("Visit not found.")

    def _filtered(self, request):
        params = request.query_params.copy()
        if not any(params.get(k) for k in ("date", "start", "end")):
            params["date"] = today_date_key().isoformat()

        f = VisitFilter(params, queryset=list_visits())
        if not f.is_valid():
            raise DRFValidationError(f.errors)
        return f.qs

    # ------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------
    @extend_schema(
        tags=["Visits"],
        parameters=[
            DATE_PARAM,
            OpenApiParameter(name="start", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="q", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False,
                             description="Search by name, phone or patient number."),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False,
                             enum=["pending", "completed"]),
            OpenApiParameter(name="gender", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False,
                             enum=["male", "female", "other"]),
        ],
        responses={200: VisitSerializer(many=True)},
    )
    def list(self, request):
        return paginate(request, self._filtered(request), VisitSerializer)

    @extend_schema(tags=["Visits"], responses={200: VisitSerializer})
    def retrieve(self, request, pk=None):
        visit = self.get_object(request, pk)
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Visits"],
        request=VisitCreateSerializer,
        responses={201: VisitSerializer, 503: OpenApiResponse(description="Patient number allocation failed.")},
    )
    def create(self, request):
        ser = VisitCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        try:
            visit = VisitService.register_visit(actor_user_id=_actor_id(request), **ser.validated_data)
        except AllocationFailed:
            raise NumberingUnavailable()

        return Response(VisitSerializer(visit).data, status=status.HTTP_201_CREATED)

    def _update(self, request, pk):
        visit = self.get_object(request, pk)

        ser = VisitUpdateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        visit = VisitService.update_visit(
            actor_user_id=_actor_id(request),
            visit_id=visit.id,
            data=ser.validated_data,
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=VisitUpdateSerializer, responses={200: VisitSerializer})
    def update(self, request, pk=None):
        return self._update(request, pk)

    @extend_schema(tags=["Visits"], request=VisitUpdateSerializer, responses={200: VisitSerializer})
    def partial_update(self, request, pk=None):
        return self._update(request, pk)

    @extend_schema(tags=["Visits"], responses={204: None})
    def destroy(self, request, pk=None):
        visit = self.get_object(request, pk)
        VisitService.delete_visit(actor_user_id=_actor_id(request), visit_id=visit.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------
    # Workflow endpoints
    # ------------------------------------------------------------
    @extend_schema(tags=["Visits"], request=VisitStatusSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        visit = self.get_object(request, pk)

        ser = VisitStatusSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        visit = VisitService.set_completed(
            actor_user_id=_actor_id(request),
            visit_id=visit.id,
            completed=ser.validated_data["completed"],
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Visits"],
        parameters=[DATE_PARAM],
        responses={200: NextNumberSerializer, 503: OpenApiResponse(description="Patient number allocation failed.")},
    )
    @action(detail=False, methods=["get"], url_path="next-number")
    def next_number(self, request):
        date_key = _parse_date(request.query_params.get("date")) or today_date_key()

        allocation = DailySequenceAllocator().allocate(date_key)
        if not allocation.ok:
            raise NumberingUnavailable()

        payload = {
            "date_key": allocation.date_key,
            "patient_number": allocation.number,
            "strategy": allocation.outcome,
        }
        return Response(NextNumberSerializer(payload).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], parameters=[DATE_PARAM], responses={200: DayCountSerializer})
    @action(detail=False, methods=["get"], url_path="today")
    def today(self, request):
        date_key = _parse_date(request.query_params.get("date")) or today_date_key()

        stats = day_stats(list_visits(date_key=date_key).only("completed"))
        allocation = DailySequenceAllocator().allocate(date_key, observed_count=stats["total"])

        payload = {
            "date_key": date_key,
            **stats,
            "next_patient_number": allocation.number,
        }
        return Response(DayCountSerializer(payload).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Visits"],
        parameters=[
            DATE_PARAM,
            OpenApiParameter(name="filetype", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False,
                             enum=sorted(RENDERERS), description="Spreadsheet (default) or CSV."),
        ],
        responses={
            (200, CONTENT_TYPES["xlsx"]): OpenApiTypes.BINARY,
            (200, CONTENT_TYPES["csv"]): OpenApiTypes.STR,
        },
    )
    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        filetype = (request.query_params.get("filetype") or XLSX).lower()
        if filetype not in RENDERERS:
            raise DRFValidationError({"filetype": f"Expected one of: {', '.join(sorted(RENDERERS))}"})

        qs = self._filtered(request)
        date_key = (
            _parse_date(request.query_params.get("date"))
            or _parse_date(request.query_params.get("start"), "start")
            or today_date_key()
        )

        response = HttpResponse(RENDERERS[filetype](qs), content_type=CONTENT_TYPES[filetype])
        response["Content-Disposition"] = f'attachment; filename="{export_filename(date_key, filetype)}"'

        AuditService.log_visit(
            AuditCode.VISITS_EXPORTED,
            visit_id=None,
            actor_user_id=_actor_id(request),
            date_key=date_key.isoformat(),
            filetype=filetype,
            rows=qs.count(),
        )
        return response

    @extend_schema(tags=["Visits"], responses={200: WhatsAppLinkSerializer})
    @action(detail=True, methods=["get"], url_path="whatsapp")
    def whatsapp(self, request, pk=None):
        visit = self.get_object(request, pk)
        try:
            url = whatsapp_link(visit)
        except ValueError as e:
            raise DRFValidationError({"phone": [str(e)]})

        payload = {"url": url, "message": render_visit_message(visit)}
        return Response(WhatsAppLinkSerializer(payload).data, status=status.HTTP_200_OK)
