# clinic_core/reports/selectors.py
from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count
from django.utils import timezone

from clinic_core.audit.selectors import activity_by_actor, count_events
from clinic_core.common.permissions import ROLE_DOCTOR, ROLE_RECEPTION
from clinic_core.visits.models import PatientVisit
from clinic_core.visits.selectors import list_visits

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}

PERIOD_LABELS = {
    "7d": "Last 7 Days",
    "30d": "Last 30 Days",
    "90d": "Last 90 Days",
}

AGE_GROUPS = ("0-18", "19-35", "36-50", "51+")
BMI_CATEGORIES = ("Underweight", "Normal", "Overweight", "Obese")


def _assumed_height() -> float:
    return float(getattr(settings, "CLINIC_ASSUMED_HEIGHT_M", 1.7))


def bmi(weight: float, height: float | None = None) -> float:
    h = height or _assumed_height()
    return round(weight / (h * h), 1)


def bmi_category(value: float) -> str:
    if value < 18.5:
        return "Underweight"
    if value < 25:
        return "Normal"
    if value < 30:
        return "Overweight"
    return "Obese"


def age_group(age: int) -> str:
    if age <= 18:
        return "0-18"
    if age <= 35:
        return "19-35"
    if age <= 50:
        return "36-50"
    return "51+"


def shift_for_hour(hour: int) -> str:
    if 6 <= hour < 14:
        return "morning_shift"
    if 14 <= hour < 22:
        return "evening_shift"
    return "night_shift"


def _average(values: list[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 1)


def summarize_visits(visits: Iterable[PatientVisit]) -> dict:
    """
    Aggregate figures for a set of visits: gender split, status, shift of
    registration (clinic local hour), age groups, BMI categories from an
    assumed height, and average weight / temperature.
    """
    stats = {
        "total": 0,
        "male": 0,
        "female": 0,
        "other": 0,
        "completed": 0,
        "pending": 0,
        "morning_shift": 0,
        "evening_shift": 0,
        "night_shift": 0,
        "age_groups": {k: 0 for k in AGE_GROUPS},
        "bmi_categories": {k: 0 for k in BMI_CATEGORIES},
    }
    weights: list[float] = []
    temperatures: list[float] = []

    for v in visits:
        stats["total"] += 1
        if v.gender in ("male", "female", "other"):
            stats[v.gender] += 1
        stats["completed" if v.completed else "pending"] += 1

        stats[shift_for_hour(timezone.localtime(v.timestamp).hour)] += 1
        stats["age_groups"][age_group(v.age)] += 1

        if v.weight:
            weights.append(v.weight)
            stats["bmi_categories"][bmi_category(bmi(v.weight))] += 1
        if v.temperature:
            temperatures.append(v.temperature)

    stats["average_weight"] = _average(weights)
    stats["average_temperature"] = _average(temperatures)
    return stats


def daily_report(*, date_key: date) -> dict:
    return {
        "date_key": date_key,
        "stats": summarize_visits(list_visits(date_key=date_key)),
    }


def range_report(*, start: date, end: date) -> dict:
    if start > end:
        raise ValueError("start must be on or before end.")

    visits = list(list_visits(start=start, end=end))

    per_day: dict[date, int] = defaultdict(int)
    for v in visits:
        per_day[v.date_key] += 1

    return {
        "start": start,
        "end": end,
        "stats": summarize_visits(visits),
        "per_day": [{"date_key": d, "total": per_day[d]} for d in sorted(per_day)],
    }


def _user_activity(since) -> dict[str, dict]:
    """
    Per-username figures for the admin overview. visits_registered counts the
    user's surviving visits (all time); the rest comes from the audit trail
    inside the window.
    """
    activity = {
        username: {**stats, "visits_registered": 0}
        for username, stats in activity_by_actor(since=since).items()
    }

    registered = (
        PatientVisit.objects.filter(registered_by__isnull=False)
        .values("registered_by__username")
        .annotate(n=Count("id"))
    )
    for row in registered:
        entry = activity.setdefault(
            row["registered_by__username"],
            {"total_activities": 0, "visits_deleted": 0, "last_activity": None},
        )
        entry["visits_registered"] = row["n"]

    return activity


def admin_overview(*, period: str = "7d") -> dict:
    if period not in PERIOD_DAYS:
        raise ValueError(f"period must be one of {', '.join(PERIOD_DAYS)}.")

    days = PERIOD_DAYS[period]
    since = timezone.now() - timedelta(days=days)

    User = get_user_model()
    users = User.objects.filter(is_active=True)
    recent_visits = PatientVisit.objects.filter(timestamp__gt=since).count()

    return {
        "period": period,
        "period_label": PERIOD_LABELS[period],
        "stats": {
            "total_users": users.count(),
            "staff_users": users.filter(groups__name=ROLE_RECEPTION).distinct().count(),
            "doctor_users": users.filter(groups__name=ROLE_DOCTOR).distinct().count(),
            "total_visits": PatientVisit.objects.count(),
            "recent_visits": recent_visits,
            "recent_activities": count_events(since=since),
            "avg_visits_per_day": round(recent_visits / days, 1),
        },
        "user_activity": _user_activity(since),
    }
