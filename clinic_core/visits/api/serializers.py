# clinic_core/visits/api/serializers.py
from __future__ import annotations

from django.utils import timezone
from rest_framework import serializers

from clinic_core.visits.models import Gender, PatientVisit


class VisitCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=1, max_value=120)
    phone = serializers.CharField(max_length=32)
    weight = serializers.FloatField(min_value=1, max_value=300)
    temperature = serializers.FloatField(min_value=10, max_value=140, required=False, allow_null=True, default=None)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True, default="")
    additional_info = serializers.CharField(required=False, allow_blank=True, default="")


class VisitUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH). Day and number are fixed at registration.
    """
    name = serializers.CharField(max_length=255, required=False)
    age = serializers.IntegerField(min_value=1, max_value=120, required=False)
    phone = serializers.CharField(max_length=32, required=False)
    weight = serializers.FloatField(min_value=1, max_value=300, required=False)
    temperature = serializers.FloatField(min_value=10, max_value=140, required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False, allow_blank=True)
    additional_info = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one editable field is required.")
        return attrs


class VisitStatusSerializer(serializers.Serializer):
    completed = serializers.BooleanField()


class VisitSerializer(serializers.ModelSerializer):
    registered_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    date = serializers.SerializerMethodField()
    time = serializers.SerializerMethodField()

    class Meta:
        model = PatientVisit
        fields = [
            "id",
            "patient_number",
            "date_key",
            "date",
            "time",
            "timestamp",
            "status",
            "completed",
            "name",
            "age",
            "phone",
            "weight",
            "temperature",
            "gender",
            "additional_info",
            "registered_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_date(self, obj) -> str:
        return obj.date_key.strftime("%B %d, %Y")

    def get_time(self, obj) -> str:
        return timezone.localtime(obj.timestamp).strftime("%I:%M %p")


class NextNumberSerializer(serializers.Serializer):
    date_key = serializers.DateField()
    patient_number = serializers.IntegerField()
    strategy = serializers.CharField()


class DayCountSerializer(serializers.Serializer):
    date_key = serializers.DateField()
    total = serializers.IntegerField()
    completed = serializers.IntegerField()
    pending = serializers.IntegerField()
    next_patient_number = serializers.IntegerField(allow_null=True)


class WhatsAppLinkSerializer(serializers.Serializer):
    url = serializers.URLField()
    message = serializers.CharField()
