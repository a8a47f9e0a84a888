# clinic_core/visits/tests/test_numbering_orm.py
from datetime import date, timedelta

import pytest
from django.db import DatabaseError

from clinic_core.tests.helpers import make_visit
from clinic_core.visits.numbering import (
    AllocationFailed,
    AllocationOutcome,
    DailySequenceAllocator,
    OrmVisitNumberSource,
    QueryUnsupported,
    StorageUnavailable,
    next_patient_number,
)

pytestmark = pytest.mark.django_db

DAY = date(2025, 3, 14)


def test_numbers_are_per_day():
    make_visit(date_key=DAY, patient_number=1)
    make_visit(date_key=DAY, patient_number=2)
    make_visit(date_key=DAY - timedelta(days=1), patient_number=9)

    assert next_patient_number(DAY) == 3
    assert next_patient_number(DAY + timedelta(days=1)) == 1


def test_ordered_read_returns_highest_first():
    make_visit(date_key=DAY, patient_number=2, hour=9)
    make_visit(date_key=DAY, patient_number=5, hour=10)
    make_visit(date_key=DAY, patient_number=3, hour=11)

    rows = OrmVisitNumberSource().fetch_by_date_ordered(DAY)
    assert [r.patient_number for r in rows] == [5, 3, 2]


def test_duplicate_numbers_tie_break_on_latest_timestamp():
    make_visit(date_key=DAY, patient_number=4, hour=9)
    latest = make_visit(date_key=DAY, patient_number=4, hour=12)

    rows = OrmVisitNumberSource().fetch_by_date_ordered(DAY)
    assert rows[0].timestamp == latest.timestamp
    assert next_patient_number(DAY) == 5


def test_orm_ordered_failure_uses_unordered_read(monkeypatch):
    make_visit(date_key=DAY, patient_number=1)
    make_visit(date_key=DAY, patient_number=2)

    def boom(self, date_key):
        raise QueryUnsupported("ordered read unavailable")

    monkeypatch.setattr(OrmVisitNumberSource, "fetch_by_date_ordered", boom)

    result = DailySequenceAllocator().allocate(DAY)
    assert result.outcome == AllocationOutcome.FALLBACK
    assert result.number == 3


def test_database_errors_are_translated(monkeypatch):
    def fail(self, date_key):
        raise DatabaseError("relation does not exist")

    monkeypatch.setattr(OrmVisitNumberSource, "_for_day", fail)
    source = OrmVisitNumberSource()

    with pytest.raises(QueryUnsupported):
        source.fetch_by_date_ordered(DAY)
    with pytest.raises(StorageUnavailable):
        source.fetch_by_date_unordered(DAY)
    with pytest.raises(AllocationFailed):
        DailySequenceAllocator(source).next_patient_number(DAY)
