# clinic_core/common/middleware.py
from __future__ import annotations

import re

from django.utils.deprecation import MiddlewareMixin

from clinic_core.common.api.exceptions import ensure_request_id

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_RID = re.compile(r"^[A-Za-z0-9\-_.]{1,64}$")


class RequestIdMiddleware(MiddlewareMixin):
    """
    Correlates a request with its log lines and error envelopes.

      - Honors an incoming X-Request-ID if it looks sane, otherwise generates one.
      - Attaches request.request_id (read by the error envelope).
      - Echoes the id back on the response.
    """

    def process_request(self, request):
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        if incoming and _VALID_RID.match(incoming):
            request.request_id = incoming
        else:
            ensure_request_id(request)
        return None

    def process_response(self, request, response):
        rid = getattr(request, "request_id", None)
        if rid:
            response[REQUEST_ID_HEADER] = rid
        return response
