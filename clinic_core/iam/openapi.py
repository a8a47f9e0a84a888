# clinic_core/iam/openapi.py
from django.conf import settings
from drf_spectacular.extensions import OpenApiAuthenticationExtension


class CookieOrHeaderJWTAuthenticationScheme(OpenApiAuthenticationExtension):
    """Documents both ways of sending the access token."""
    target_class = "clinic_core.iam.auth.CookieOrHeaderJWTAuthentication"
    name = ["BearerJWT", "CookieJWT"]

    def get_security_definition(self, auto_schema):
        return [
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            },
            {
                "type": "apiKey",
                "in": "cookie",
                "name": settings.SIMPLE_JWT.get("AUTH_COOKIE", "clinic_access"),
                "description": "HttpOnly cookie set by POST /api/v1/auth/login/.",
            },
        ]
