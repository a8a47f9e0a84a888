# clinic_core/iam/api/session.py

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from clinic_core.iam.api.schema_serializers import SessionSerializer
from clinic_core.iam.session import session_for_request


class SessionView(APIView):
    """
    Frontend bootstrap: who is logged in, their role and which view to land on.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: SessionSerializer}, tags=["IAM"])
    def get(self, request):
        session = session_for_request(request)
        return Response(SessionSerializer(session.as_dict()).data)
