# clinic_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    request.request_id, generated on first use.
    Normally set by RequestIdMiddleware.
    """
    if request is None:
        return uuid.uuid4().hex
    rid = getattr(request, "request_id", None)
    if not rid:
        rid = uuid.uuid4().hex
        request.request_id = rid
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    {"error": {"code", "message", "details", "request_id"}}
    """
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


class NumberingUnavailable(exceptions.APIException):
    """
    No patient number could be allocated; the visit was not written and the
    form can be resubmitted.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Could not allocate a patient number. The visit was not registered."
    default_code = "allocation_failed"


# Checked in order; first match wins
_ERROR_CODES = (
    (exceptions.ValidationError, "validation_error"),
    (exceptions.NotAuthenticated, "not_authenticated"),
    (exceptions.AuthenticationFailed, "authentication_failed"),
    (exceptions.PermissionDenied, "permission_denied"),
    (Http404, "not_found"),
)


def _code_for(exc: Exception, http_status: int) -> str:
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    if isinstance(exc, exceptions.APIException):
        return exc.default_code or "api_error"
    return "server_error" if http_status >= 500 else "error"


def _as_drf(exc: Exception) -> Exception:
    # ORM lookups and model validation escaping a view
    if isinstance(exc, ObjectDoesNotExist):
        return exceptions.NotFound()
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return exceptions.ValidationError(detail)
    return exc


def _split_detail(data: Any) -> tuple[str, Any]:
    """
    {"detail": msg}          -> (msg, None)
    {"detail": msg, **rest}  -> (msg, rest)
    anything else            -> ("Request failed.", data)
    """
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None
    return "Request failed.", data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    exc = _as_drf(exc)
    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled API error (request_id=%s)", ensure_request_id(request), exc_info=exc)
        return Response(
            build_error_envelope(request=request, code="server_error", message="Unexpected server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    message, details = _split_detail(response.data)
    return Response(
        build_error_envelope(
            request=request,
            code=_code_for(exc, response.status_code),
            message=message,
            details=details,
        ),
        status=response.status_code,
        headers=response.headers,
    )
