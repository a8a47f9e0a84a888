# clinic_core/visits/numbering.py
"""
Daily patient numbering.

The next patient number for a day is derived from the visits already stored
for that day:

1. ordered read: visits for the day sorted by patient_number desc, then
   timestamp desc; the first row holds the highest number.
2. unordered read (only when the ordered read fails): every visit for the
   day, highest number found by scanning.

The allocator is read-only. Writing the visit with the returned number is the
caller's job and is not synchronised with the read, so two registrations that
race on the same day may receive the same number.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Protocol, Sequence

from django.db import DatabaseError, transaction

from clinic_core.visits.models import PatientVisit

logger = logging.getLogger(__name__)


class NumberSourceError(Exception):
    """A read against the visit store failed."""


class QueryUnsupported(NumberSourceError):
    """The store cannot satisfy the ordered read (e.g. missing index)."""


class StorageUnavailable(NumberSourceError):
    """The store could not be read at all."""


class AllocationFailed(Exception):
    """Neither read strategy produced a number; nothing may be assigned."""

    def __init__(self, date_key: date, reason: str = ""):
        self.date_key = date_key
        self.reason = reason
        msg = f"Could not allocate a patient number for {date_key}"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class VisitNumberSource(Protocol):
    def fetch_by_date_ordered(self, date_key: date) -> Sequence[Any]: ...

    def fetch_by_date_unordered(self, date_key: date) -> Sequence[Any]: ...


class AllocationOutcome:
    ORDERED = "ordered"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass(frozen=True)
class Allocation:
    date_key: date
    outcome: str
    number: Optional[int] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome != AllocationOutcome.FAILED


class OrmVisitNumberSource:
    """
    Reads visit numbers through the Django ORM.
    Rows are named tuples with patient_number and timestamp.

    Each read runs in its own savepoint; a failed read leaves an enclosing
    transaction usable for the next read.
    """

    def _for_day(self, date_key: date):
        return PatientVisit.objects.filter(date_key=date_key)

    def fetch_by_date_ordered(self, date_key: date) -> Sequence[Any]:
        try:
            with transaction.atomic():
                return list(
                    self._for_day(date_key)
                    .order_by("-patient_number", "-timestamp")
                    .values_list("patient_number", "timestamp", named=True)
                )
        except DatabaseError as exc:
            raise QueryUnsupported(str(exc)) from exc

    def fetch_by_date_unordered(self, date_key: date) -> Sequence[Any]:
        try:
            with transaction.atomic():
                return list(
                    self._for_day(date_key)
                    .order_by()
                    .values_list("patient_number", "timestamp", named=True)
                )
        except DatabaseError as exc:
            raise StorageUnavailable(str(exc)) from exc


def _number_of(row) -> Optional[int]:
    if isinstance(row, dict):
        return row.get("patient_number")
    return getattr(row, "patient_number", None)


class DailySequenceAllocator:
    """
    Computes the next patient number for a day.

    ``allocate`` never raises for store failures; it returns an ``Allocation``
    tagged with the strategy that produced the number, or ``failed``.
    ``next_patient_number`` is the raising wrapper used by the write path.
    """

    def __init__(self, source: VisitNumberSource | None = None):
        self.source = source if source is not None else OrmVisitNumberSource()

    def _ordered(self, date_key: date) -> Allocation:
        rows = self.source.fetch_by_date_ordered(date_key)
        if not rows:
            return Allocation(date_key=date_key, outcome=AllocationOutcome.ORDERED, number=1)
        return Allocation(
            date_key=date_key,
            outcome=AllocationOutcome.ORDERED,
            number=int(_number_of(rows[0]) or 0) + 1,
        )

    def _fallback(self, date_key: date, observed_count: int | None) -> Allocation:
        rows = self.source.fetch_by_date_unordered(date_key)
        if not rows:
            if observed_count:
                return Allocation(
                    date_key=date_key,
                    outcome=AllocationOutcome.FAILED,
                    reason=f"fallback read returned no visits, {observed_count} expected",
                )
            return Allocation(date_key=date_key, outcome=AllocationOutcome.FALLBACK, number=1)

        numbers = [n for n in (_number_of(r) for r in rows) if n is not None]
        return Allocation(
            date_key=date_key,
            outcome=AllocationOutcome.FALLBACK,
            number=max(numbers, default=0) + 1,
        )

    def allocate(self, date_key: date, *, observed_count: int | None = None) -> Allocation:
        """
        observed_count is the number of visits the caller already saw for the
        day (e.g. the count shown on the registration form). An empty fallback
        read contradicting it is treated as a failure, not as "first patient".
        """
        try:
            return self._ordered(date_key)
        except NumberSourceError as exc:
            logger.warning("Ordered next-number read failed for %s, scanning instead: %s", date_key, exc)

        try:
            return self._fallback(date_key, observed_count)
        except NumberSourceError as exc:
            return Allocation(date_key=date_key, outcome=AllocationOutcome.FAILED, reason=str(exc))

    def next_patient_number(self, date_key: date, *, observed_count: int | None = None) -> int:
        allocation = self.allocate(date_key, observed_count=observed_count)
        if not allocation.ok:
            logger.error("Patient number allocation failed for %s: %s", date_key, allocation.reason)
            raise AllocationFailed(date_key, allocation.reason)
        return allocation.number


def next_patient_number(date_key: date, *, observed_count: int | None = None) -> int:
    return DailySequenceAllocator().next_patient_number(date_key, observed_count=observed_count)
