# clinic_core/reports/tests/test_selectors.py
from datetime import date, timedelta

import pytest

from clinic_core.reports.selectors import (
    admin_overview,
    age_group,
    bmi,
    bmi_category,
    daily_report,
    range_report,
    shift_for_hour,
    summarize_visits,
)
from clinic_core.tests.helpers import make_visit
from clinic_core.visits.services import VisitService

pytestmark = pytest.mark.django_db

DAY = date(2025, 3, 14)


def test_bucket_helpers():
    assert [age_group(a) for a in (5, 18, 19, 35, 36, 50, 51)] == [
        "0-18", "0-18", "19-35", "19-35", "36-50", "36-50", "51+",
    ]
    assert [shift_for_hour(h) for h in (5, 6, 13, 14, 21, 22)] == [
        "night_shift", "morning_shift", "morning_shift", "evening_shift", "evening_shift", "night_shift",
    ]
    assert bmi(72.25, 1.7) == 25.0
    assert bmi_category(18.4) == "Underweight"
    assert bmi_category(24.9) == "Normal"
    assert bmi_category(25.0) == "Overweight"
    assert bmi_category(30.0) == "Obese"


def test_summarize_visits():
    visits = [
        make_visit(date_key=DAY, patient_number=1, hour=7, age=10, gender="female", weight=30.0, temperature=99.0),
        make_visit(date_key=DAY, patient_number=2, hour=15, age=40, gender="male", weight=95.0,
                   completed=True, status="completed"),
        make_visit(date_key=DAY, patient_number=3, hour=23, age=70, gender="", weight=65.0, temperature=101.0),
    ]

    stats = summarize_visits(visits)

    assert stats["total"] == 3
    assert (stats["male"], stats["female"], stats["other"]) == (1, 1, 0)
    assert (stats["completed"], stats["pending"]) == (1, 2)
    assert (stats["morning_shift"], stats["evening_shift"], stats["night_shift"]) == (1, 1, 1)
    assert stats["age_groups"] == {"0-18": 1, "19-35": 0, "36-50": 1, "51+": 1}
    assert stats["bmi_categories"] == {"Underweight": 1, "Normal": 1, "Overweight": 0, "Obese": 1}
    assert stats["average_weight"] == 63.3
    assert stats["average_temperature"] == 100.0


def test_empty_summary_has_zero_averages():
    stats = summarize_visits([])
    assert stats["total"] == 0
    assert stats["average_weight"] == 0
    assert stats["average_temperature"] == 0


def test_daily_and_range_reports():
    make_visit(date_key=DAY, patient_number=1)
    make_visit(date_key=DAY, patient_number=2)
    make_visit(date_key=DAY + timedelta(days=2), patient_number=1)
    make_visit(date_key=DAY + timedelta(days=5), patient_number=1)

    assert daily_report(date_key=DAY)["stats"]["total"] == 2

    report = range_report(start=DAY, end=DAY + timedelta(days=2))
    assert report["stats"]["total"] == 3
    assert report["per_day"] == [
        {"date_key": DAY, "total": 2},
        {"date_key": DAY + timedelta(days=2), "total": 1},
    ]

    with pytest.raises(ValueError):
        range_report(start=DAY, end=DAY - timedelta(days=1))


def test_admin_overview(admin_user, doctor_user, reception_user, readonly_user):
    visit = VisitService.register_visit(
        actor_user_id=reception_user.id, name="A", age=30, phone="1", weight=60.0,
    )
    VisitService.register_visit(actor_user_id=reception_user.id, name="B", age=31, phone="2", weight=61.0)
    VisitService.delete_visit(actor_user_id=doctor_user.id, visit_id=visit.id)

    overview = admin_overview(period="30d")
    stats = overview["stats"]

    assert overview["period_label"] == "Last 30 Days"
    assert stats["total_users"] == 4
    assert stats["staff_users"] == 1
    assert stats["doctor_users"] == 1
    assert stats["total_visits"] == 1
    assert stats["recent_visits"] == 1
    assert stats["recent_activities"] == 3
    assert stats["avg_visits_per_day"] == round(1 / 30, 1)

    activity = overview["user_activity"]
    assert activity["reception"]["visits_registered"] == 1
    assert activity["reception"]["total_activities"] == 2
    assert activity["doctor"]["visits_deleted"] == 1
    assert activity["doctor"]["last_activity"] is not None


def test_admin_overview_rejects_unknown_period():
    with pytest.raises(ValueError):
        admin_overview(period="1y")
