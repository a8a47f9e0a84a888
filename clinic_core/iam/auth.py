# clinic_core/iam/auth.py

from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication

from clinic_core.iam.session import build_session


def access_cookie_name() -> str:
    return settings.SIMPLE_JWT.get("AUTH_COOKIE", "clinic_access")


class CookieOrHeaderJWTAuthentication(JWTAuthentication):
    """
    Access token from `Authorization: Bearer <token>`, else from the HttpOnly
    access cookie set at login. A present header always wins, even when it
    carries no usable token.

    On success the request gets a ClinicSession at request.clinic_session.
    """

    def _raw_token(self, request) -> bytes | str | None:
        header = self.get_header(request)
        if header is not None:
            return self.get_raw_token(header)
        return request.COOKIES.get(access_cookie_name()) or None

    def authenticate(self, request):
        raw_token = self._raw_token(request)
        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)

        request.clinic_session = build_session(user, validated_token)
        return user, validated_token
