# clinic_core/visits/exports.py
from __future__ import annotations

import csv
import io
from typing import Iterable

from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from clinic_core.visits.models import PatientVisit

XLSX = "xlsx"
CSV = "csv"

CONTENT_TYPES = {
    XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    CSV: "text/csv",
}

SHEET_TITLE = "Patients"

HEADER = [
    "Patient No.",
    "Name",
    "Age",
    "Gender",
    "Phone",
    "Weight (kg)",
    "Temperature",
    "Date",
    "Time",
    "Status",
    "Additional Info",
]

COLUMN_WIDTHS = [12, 28, 6, 14, 18, 12, 12, 12, 10, 11, 40]


def visit_row(visit: PatientVisit) -> list:
    local_ts = timezone.localtime(visit.timestamp)
    return [
        visit.patient_number,
        visit.name,
        visit.age,
        visit.gender or "Not specified",
        visit.phone,
        visit.weight,
        "" if visit.temperature is None else visit.temperature,
        visit.date_key.isoformat(),
        local_ts.strftime("%I:%M %p"),
        "Completed" if visit.completed else "Pending",
        visit.additional_info or "",
    ]


def visits_to_xlsx(visits: Iterable[PatientVisit]) -> bytes:
    """One "Patients" sheet, bold header row, frozen below the header."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(HEADER)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    ws.freeze_panes = "A2"

    for col, width in enumerate(COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width

    for v in visits:
        ws.append(visit_row(v))

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def visits_to_csv(visits: Iterable[PatientVisit]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(HEADER)
    for v in visits:
        writer.writerow(visit_row(v))
    return output.getvalue()


RENDERERS = {
    XLSX: visits_to_xlsx,
    CSV: visits_to_csv,
}


def export_filename(date_key, filetype: str = XLSX) -> str:
    return f"patients_{date_key.isoformat()}.{filetype}"
