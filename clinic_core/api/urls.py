# clinic_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from clinic_core.audit.api.views import AuditEventViewSet
from clinic_core.iam.api.auth import LoginView, LogoutView, RefreshView
from clinic_core.iam.api.session import SessionView
from clinic_core.reports.api.views import ReportViewSet
from clinic_core.visits.api.views import VisitViewSet

router = DefaultRouter()

router.register(r"visits", VisitViewSet, basename="visits")
router.register(r"reports", ReportViewSet, basename="reports")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("session/", SessionView.as_view(), name="session"),

    # Router URLs last so explicit paths win
    *router.urls,
]
