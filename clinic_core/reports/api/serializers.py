# clinic_core/reports/api/serializers.py
from __future__ import annotations

from rest_framework import serializers


class VisitStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    male = serializers.IntegerField()
    female = serializers.IntegerField()
    other = serializers.IntegerField()
    completed = serializers.IntegerField()
    pending = serializers.IntegerField()
    morning_shift = serializers.IntegerField()
    evening_shift = serializers.IntegerField()
    night_shift = serializers.IntegerField()
    age_groups = serializers.DictField(child=serializers.IntegerField())
    bmi_categories = serializers.DictField(child=serializers.IntegerField())
    average_weight = serializers.FloatField()
    average_temperature = serializers.FloatField()


class DailyReportSerializer(serializers.Serializer):
    date_key = serializers.DateField()
    stats = VisitStatsSerializer()


class DayTotalSerializer(serializers.Serializer):
    date_key = serializers.DateField()
    total = serializers.IntegerField()


class RangeReportSerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()
    stats = VisitStatsSerializer()
    per_day = DayTotalSerializer(many=True)


class AdminStatsSerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    staff_users = serializers.IntegerField()
    doctor_users = serializers.IntegerField()
    total_visits = serializers.IntegerField()
    recent_visits = serializers.IntegerField()
    recent_activities = serializers.IntegerField()
    avg_visits_per_day = serializers.FloatField()


class UserActivitySerializer(serializers.Serializer):
    visits_registered = serializers.IntegerField()
    visits_deleted = serializers.IntegerField()
    total_activities = serializers.IntegerField()
    last_activity = serializers.DateTimeField(allow_null=True)


class AdminOverviewSerializer(serializers.Serializer):
    period = serializers.CharField()
    period_label = serializers.CharField()
    stats = AdminStatsSerializer()
    user_activity = serializers.DictField(child=UserActivitySerializer())
