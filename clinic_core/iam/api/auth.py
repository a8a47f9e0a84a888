# clinic_core/iam/api/auth.py

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.tokens import AccessToken

from clinic_core.audit.services import AuditCode, AuditService
from clinic_core.iam.api.schema_serializers import (
    DetailResponseSerializer,
    LoginRequestSerializer,
    LoginResponseSerializer,
)
from clinic_core.iam.session import build_session, session_for_request

logger = logging.getLogger(__name__)


def _jwt_cfg() -> dict:
    return getattr(settings, "SIMPLE_JWT", {}) or {}


def _seconds(value: Any) -> int:
    """JWT lifetime setting (timedelta or seconds) as whole seconds; 0 means session cookie."""
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    cfg = _jwt_cfg()
    secure = bool(cfg.get("AUTH_COOKIE_SECURE", False))
    samesite = cfg.get("AUTH_COOKIE_SAMESITE", "Lax")

    cookies = (
        (cfg.get("AUTH_COOKIE", "clinic_access"), access,
         _seconds(cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=30)))),
        (cfg.get("AUTH_COOKIE_REFRESH", "clinic_refresh"), refresh,
         _seconds(cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(hours=12)))),
    )
    for name, value, max_age in cookies:
        response.set_cookie(
            name,
            value,
            max_age=max_age or None,
            httponly=True,
            secure=secure,
            samesite=samesite,
            path="/",
        )


def _clear_auth_cookies(response: Response) -> None:
    cfg = _jwt_cfg()
    response.delete_cookie(cfg.get("AUTH_COOKIE", "clinic_access"), path="/")
    response.delete_cookie(cfg.get("AUTH_COOKIE_REFRESH", "clinic_refresh"), path="/")


class LoginView(APIView):
    """Username/password login; tokens are returned only as HttpOnly cookies."""
    permission_classes = [AllowAny]

    @extend_schema(
        request=LoginRequestSerializer,
        responses={200: LoginResponseSerializer},
        tags=["IAM"],
    )
    def post(self, request):
        serializer = TokenObtainPairSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        access = serializer.validated_data["access"]
        refresh = serializer.validated_data["refresh"]
        user = serializer.user

        session = build_session(user, AccessToken(access))
        AuditService.log_user(AuditCode.USER_LOGIN, user_id=user.id, role=session.role)
        logger.info("User %s logged in as %s", session.username, session.role)

        res = Response(
            LoginResponseSerializer({"detail": "login ok", "session": session.as_dict()}).data,
            status=status.HTTP_200_OK,
        )
        _set_auth_cookies(res, access=access, refresh=refresh)
        return res


class RefreshView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        refresh = request.COOKIES.get(_jwt_cfg().get("AUTH_COOKIE_REFRESH", "clinic_refresh"))

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        serializer.is_valid(raise_exception=True)

        access = serializer.validated_data["access"]
        new_refresh = serializer.validated_data.get("refresh", refresh)

        res = Response({"detail": "refreshed"}, status=status.HTTP_200_OK)
        _set_auth_cookies(res, access=access, refresh=new_refresh)
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["IAM"])
    def post(self, request):
        session = session_for_request(request)
        AuditService.log_user(AuditCode.USER_LOGOUT, user_id=session.user_id)

        res = Response({"detail": "logged out"}, status=status.HTTP_200_OK)
        _clear_auth_cookies(res)
        return res
