# clinic_core/reports/api/views.py
from __future__ import annotations

import json
from datetime import date

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from clinic_core.audit.api.serializers import AuditEventSerializer
from clinic_core.audit.selectors import list_audit_events
from clinic_core.common.permissions import ReportPermission
from clinic_core.reports.api.serializers import (
    AdminOverviewSerializer,
    DailyReportSerializer,
    RangeReportSerializer,
)
from clinic_core.reports.selectors import admin_overview, daily_report, range_report
from clinic_core.visits.selectors import today_date_key

PERIOD_PARAM = OpenApiParameter(
    name="period",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.QUERY,
    required=False,
    enum=["7d", "30d", "90d"],
    description="Look-back window (default 7d).",
)


def _parse_date(raw: str | None, field_name: str) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw))
    except ValueError:
        raise DRFValidationError({field_name: "Invalid date (YYYY-MM-DD expected)"})


def _overview_or_400(request) -> dict:
    try:
        return admin_overview(period=request.query_params.get("period") or "7d")
    except ValueError as e:
        raise DRFValidationError({"detail": str(e)})


class ReportViewSet(viewsets.ViewSet):
    """
    Visit statistics for the doctor (daily / range) and the admin overview.
    """
    permission_classes = [ReportPermission]

    @extend_schema(
        tags=["Reports"],
        parameters=[OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False)],
        responses={200: DailyReportSerializer},
    )
    @action(detail=False, methods=["get"], url_path="daily")
    def daily(self, request):
        date_key = _parse_date(request.query_params.get("date"), "date") or today_date_key()
        return Response(DailyReportSerializer(daily_report(date_key=date_key)).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Reports"],
        parameters=[
            OpenApiParameter(name="start", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="end", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: RangeReportSerializer},
    )
    @action(detail=False, methods=["get"], url_path="range")
    def date_range(self, request):
        start = _parse_date(request.query_params.get("start"), "start")
        end = _parse_date(request.query_params.get("end"), "end")
        if start is None or end is None:
            raise DRFValidationError({"detail": "Both start and end are required."})

        try:
            report = range_report(start=start, end=end)
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(RangeReportSerializer(report).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Reports"], parameters=[PERIOD_PARAM], responses={200: AdminOverviewSerializer})
    @action(detail=False, methods=["get"], url_path="admin")
    def admin_overview(self, request):
        return Response(AdminOverviewSerializer(_overview_or_400(request)).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Reports"],
        parameters=[PERIOD_PARAM],
        responses={(200, "application/json"): OpenApiTypes.OBJECT},
    )
    @action(detail=False, methods=["get"], url_path="admin/export")
    def admin_export(self, request):
        overview = AdminOverviewSerializer(_overview_or_400(request)).data
        recent = AuditEventSerializer(list_audit_events()[:100], many=True).data

        payload = {
            "export_date": timezone.now(),
            **overview,
            "recent_activities": recent,
        }

        response = HttpResponse(
            json.dumps(payload, cls=DjangoJSONEncoder, indent=2),
            content_type="application/json",
        )
        filename = f"clinic-admin-export-{today_date_key().isoformat()}.json"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
