# clinic_core/iam/api/schema_serializers.py
from __future__ import annotations

from rest_framework import serializers


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class SessionSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    username = serializers.CharField()
    role = serializers.CharField()
    roles = serializers.ListField(child=serializers.CharField())
    landing_view = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True, required=False)


class LoginResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    session = SessionSerializer()


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
