# clinic_core/visits/tests/test_visits_api.py
import csv
import io
from datetime import date
from urllib.parse import unquote

import pytest
from django.db import DatabaseError
from django.utils import timezone
from openpyxl import load_workbook
from rest_framework.test import APIClient

from clinic_core.audit.models import AuditEvent
from clinic_core.tests.helpers import make_visit
from clinic_core.visits.exports import CONTENT_TYPES
from clinic_core.visits.models import PatientVisit
from clinic_core.visits.numbering import OrmVisitNumberSource, QueryUnsupported, StorageUnavailable

pytestmark = pytest.mark.django_db

URL = "/api/v1/visits/"
DAY = date(2025, 3, 14)


def _detail(visit_id, suffix=""):
    return f"{URL}{visit_id}/{suffix}"


def _break_numbering(monkeypatch):
    def ordered(self, date_key):
        raise QueryUnsupported("no index")

    def unordered(self, date_key):
        raise StorageUnavailable("offline")

    monkeypatch.setattr(OrmVisitNumberSource, "fetch_by_date_ordered", ordered)
    monkeypatch.setattr(OrmVisitNumberSource, "fetch_by_date_unordered", unordered)


# ------------------------------------------------------------
# Registration
# ------------------------------------------------------------
def test_register_assigns_daily_numbers(reception_client, visit_payload):
    r1 = reception_client.post(URL, visit_payload, format="json")
    r2 = reception_client.post(URL, {**visit_payload, "name": "Second"}, format="json")

    assert r1.status_code == 201, r1.data
    assert r2.status_code == 201, r2.data
    assert r1.data["patient_number"] == 1
    assert r2.data["patient_number"] == 2
    assert r1.data["date_key"] == timezone.localdate().isoformat()
    assert r1.data["status"] == "pending"
    assert r1.data["completed"] is False


def test_register_rejects_out_of_range_values(reception_client, visit_payload):
    r = reception_client.post(URL, {**visit_payload, "age": 0, "weight": 500}, format="json")
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert set(r.data["error"]["details"]) >= {"age", "weight"}


def test_register_allocation_failure_returns_503(reception_client, visit_payload, monkeypatch):
    _break_numbering(monkeypatch)

    r = reception_client.post(URL, visit_payload, format="json")
    assert r.status_code == 503
    assert r.data["error"]["code"] == "allocation_failed"
    assert r.data["error"]["request_id"]
    assert PatientVisit.objects.count() == 0


def test_register_with_unreadable_store_returns_503(reception_client, visit_payload, monkeypatch):
    def offline(*, date_key):
        raise DatabaseError("store offline")

    monkeypatch.setattr("clinic_core.visits.services.count_for_day", offline)
    _break_numbering(monkeypatch)

    r = reception_client.post(URL, visit_payload, format="json")
    assert r.status_code == 503
    assert r.data["error"]["code"] == "allocation_failed"


def test_readonly_cannot_register(readonly_client, visit_payload):
    r = readonly_client.post(URL, visit_payload, format="json")
    assert r.status_code == 403
    assert r.data["error"]["code"] == "permission_denied"


def test_unauthenticated_is_rejected(visit_payload):
    r = APIClient().post(URL, visit_payload, format="json")
    assert r.status_code in (401, 403)


# ------------------------------------------------------------
# Listing
# ------------------------------------------------------------
def test_list_defaults_to_today(readonly_client):
    today = timezone.localdate()
    make_visit(date_key=today, patient_number=1)
    make_visit(date_key=DAY, patient_number=1)

    r = readonly_client.get(URL)
    assert r.status_code == 200, r.data
    assert r.data["count"] == 1
    assert r.data["results"][0]["date_key"] == today.isoformat()


def test_list_filters_by_day_search_status_and_gender(doctor_client):
    make_visit(date_key=DAY, patient_number=1, name="Asha Verma", phone="9000000001", gender="female")
    make_visit(date_key=DAY, patient_number=2, name="Ravi Kumar", phone="9000000002", completed=True, status="completed")
    make_visit(date_key=DAY, patient_number=12, name="Meena", phone="9111111111", gender="female")

    def numbers(params):
        r = doctor_client.get(URL, {"date": DAY.isoformat(), **params})
        assert r.status_code == 200, r.data
        return [row["patient_number"] for row in r.data["results"]]

    assert numbers({}) == [1, 2, 12]
    assert numbers({"q": "asha"}) == [1]
    assert numbers({"q": "9111"}) == [12]
    assert numbers({"q": "12"}) == [12]
    assert numbers({"status": "completed"}) == [2]
    assert numbers({"status": "pending"}) == [1, 12]
    assert numbers({"gender": "female"}) == [1, 12]


def test_list_rejects_bad_date(doctor_client):
    r = doctor_client.get(URL, {"date": "14-03-2025"})
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"


def test_retrieve_unknown_visit_is_404(doctor_client):
    r = doctor_client.get(_detail("00000000-0000-0000-0000-000000000000"))
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


# ------------------------------------------------------------
# Edit / status / delete
# ------------------------------------------------------------
def test_patch_ignores_number_and_day(reception_client):
    visit = make_visit(date_key=DAY, patient_number=3)

    r = reception_client.patch(
        _detail(visit.id),
        {"name": "Renamed", "temperature": 101.2, "patient_number": 1, "date_key": "2020-01-01"},
        format="json",
    )
    assert r.status_code == 200, r.data
    assert r.data["name"] == "Renamed"
    assert r.data["temperature"] == 101.2
    assert r.data["patient_number"] == 3
    assert r.data["date_key"] == DAY.isoformat()


def test_patch_requires_an_editable_field(reception_client):
    visit = make_visit(date_key=DAY, patient_number=3)
    r = reception_client.patch(_detail(visit.id), {"patient_number": 1}, format="json")
    assert r.status_code == 400


def test_doctor_marks_visit_completed(doctor_client):
    visit = make_visit(date_key=DAY, patient_number=1)

    r = doctor_client.post(_detail(visit.id, "status/"), {"completed": True}, format="json")
    assert r.status_code == 200, r.data
    assert r.data["completed"] is True
    assert r.data["status"] == "completed"


def test_reception_cannot_change_status(reception_client):
    visit = make_visit(date_key=DAY, patient_number=1)
    r = reception_client.post(_detail(visit.id, "status/"), {"completed": True}, format="json")
    assert r.status_code == 403


def test_delete_visit(reception_client):
    visit = make_visit(date_key=DAY, patient_number=1)

    r = reception_client.delete(_detail(visit.id))
    assert r.status_code == 204
    assert not PatientVisit.objects.filter(id=visit.id).exists()
    assert AuditEvent.objects.filter(event_code="visit.deleted", entity_id=visit.id).exists()


def test_readonly_cannot_delete(readonly_client):
    visit = make_visit(date_key=DAY, patient_number=1)
    r = readonly_client.delete(_detail(visit.id))
    assert r.status_code == 403
    assert PatientVisit.objects.filter(id=visit.id).exists()


# ------------------------------------------------------------
# Next number / today
# ------------------------------------------------------------
def test_next_number_preview(reception_client):
    make_visit(date_key=DAY, patient_number=1)
    make_visit(date_key=DAY, patient_number=2)

    r = reception_client.get(f"{URL}next-number/", {"date": DAY.isoformat()})
    assert r.status_code == 200, r.data
    assert r.data == {"date_key": DAY.isoformat(), "patient_number": 3, "strategy": "ordered"}

    # preview writes nothing
    assert PatientVisit.objects.filter(date_key=DAY).count() == 2


def test_next_number_reports_fallback_strategy(reception_client, monkeypatch):
    make_visit(date_key=DAY, patient_number=4)

    def ordered(self, date_key):
        raise QueryUnsupported("no index")

    monkeypatch.setattr(OrmVisitNumberSource, "fetch_by_date_ordered", ordered)

    r = reception_client.get(f"{URL}next-number/", {"date": DAY.isoformat()})
    assert r.status_code == 200, r.data
    assert r.data["patient_number"] == 5
    assert r.data["strategy"] == "fallback"


def test_next_number_failure_is_503(reception_client, monkeypatch):
    _break_numbering(monkeypatch)
    r = reception_client.get(f"{URL}next-number/")
    assert r.status_code == 503
    assert r.data["error"]["code"] == "allocation_failed"


def test_today_counts(readonly_client):
    make_visit(date_key=DAY, patient_number=1, completed=True, status="completed")
    make_visit(date_key=DAY, patient_number=2)

    r = readonly_client.get(f"{URL}today/", {"date": DAY.isoformat()})
    assert r.status_code == 200, r.data
    assert r.data == {
        "date_key": DAY.isoformat(),
        "total": 2,
        "completed": 1,
        "pending": 1,
        "next_patient_number": 3,
    }


# ------------------------------------------------------------
# Export / WhatsApp
# ------------------------------------------------------------
def test_export_xlsx_by_default(readonly_client):
    make_visit(date_key=DAY, patient_number=1, name="Asha", temperature=None)
    make_visit(date_key=DAY, patient_number=2, name="Ravi", completed=True, status="completed")

    r = readonly_client.get(f"{URL}export/", {"date": DAY.isoformat()})
    assert r.status_code == 200
    assert r["Content-Type"] == CONTENT_TYPES["xlsx"]
    assert f'filename="patients_{DAY.isoformat()}.xlsx"' in r["Content-Disposition"]

    ws = load_workbook(io.BytesIO(r.content)).active
    rows = list(ws.iter_rows(values_only=True))
    assert ws.title == "Patients"
    assert rows[0][0] == "Patient No."
    assert [row[0] for row in rows[1:]] == [1, 2]
    assert [row[1] for row in rows[1:]] == ["Asha", "Ravi"]
    assert rows[1][6] in (None, "")
    assert rows[2][9] == "Completed"

    ev = AuditEvent.objects.get(event_code="visits.exported")
    assert ev.metadata["filetype"] == "xlsx"
    assert ev.metadata["rows"] == 2


def test_export_unknown_filetype_is_400(readonly_client):
    r = readonly_client.get(f"{URL}export/", {"filetype": "pdf"})
    assert r.status_code == 400
    assert "filetype" in r.data["error"]["details"]


def test_export_csv(readonly_client):
    make_visit(date_key=DAY, patient_number=1, name="Asha", temperature=None)
    make_visit(date_key=DAY, patient_number=2, name="Ravi", completed=True, status="completed")

    r = readonly_client.get(f"{URL}export/", {"date": DAY.isoformat(), "filetype": "csv"})
    assert r.status_code == 200
    assert r["Content-Type"].startswith("text/csv")
    assert f'filename="patients_{DAY.isoformat()}.csv"' in r["Content-Disposition"]

    rows = list(csv.reader(io.StringIO(r.content.decode())))
    assert rows[0][0] == "Patient No."
    assert [row[1] for row in rows[1:]] == ["Asha", "Ravi"]
    assert rows[1][6] == ""
    assert rows[2][9] == "Completed"

    assert AuditEvent.objects.filter(event_code="visits.exported").exists()


def test_whatsapp_link(reception_client):
    visit = make_visit(date_key=DAY, patient_number=7, name="Asha", phone="+91 98765-43210")

    r = reception_client.get(_detail(visit.id, "whatsapp/"))
    assert r.status_code == 200, r.data
    assert r.data["url"].startswith("https://wa.me/919876543210?text=")
    assert "Patient No.: 7" in r.data["message"]
    assert "Test Clinic" in unquote(r.data["url"])


def test_whatsapp_without_phone_digits_is_400(reception_client):
    visit = make_visit(date_key=DAY, patient_number=1, phone="n/a")
    r = reception_client.get(_detail(visit.id, "whatsapp/"))
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
