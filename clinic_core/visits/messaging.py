# clinic_core/visits/messaging.py
from __future__ import annotations

import re
from urllib.parse import quote

from django.conf import settings
from django.utils import timezone

from clinic_core.visits.models import PatientVisit

WHATSAPP_BASE_URL = "https://wa.me/"

VISIT_MESSAGE_TEMPLATE = """{clinic_name}

Patient details
Patient No.: {patient_number}
Name: {name}
Age: {age} years
Gender: {gender}
Mobile: {phone}
Weight: {weight} kg
Temperature: {temperature}
Date: {date}
Time: {time}

Clinic address
{address}

Clinic hours
{hours}

Doctor
{doctor}

Thank you for trusting {clinic_name} with your care. We wish you a speedy recovery.
In case of any emergency please contact us immediately."""


def phone_digits(phone: str) -> str:
    return re.sub(r"\D", "", phone or "")


def render_visit_message(visit: PatientVisit) -> str:
    profile = getattr(settings, "CLINIC_PROFILE", {}) or {}
    local_ts = timezone.localtime(visit.timestamp) if visit.timestamp else None

    return VISIT_MESSAGE_TEMPLATE.format(
        clinic_name=profile.get("name", "Clinic"),
        address=profile.get("address", ""),
        hours=profile.get("hours", ""),
        doctor=profile.get("doctor", ""),
        patient_number=visit.patient_number,
        name=visit.name,
        age=visit.age,
        gender=visit.get_gender_display() if visit.gender else "Not specified",
        phone=visit.phone,
        weight=visit.weight,
        temperature=visit.temperature if visit.temperature is not None else "N/A",
        date=visit.date_key.strftime("%B %d, %Y"),
        time=local_ts.strftime("%I:%M %p") if local_ts else "",
    )


def whatsapp_link(visit: PatientVisit) -> str:
    """
    wa.me deep link that opens a chat with the visit summary pre-filled.
    Raises ValueError when the phone number has no digits.
    """
    digits = phone_digits(visit.phone)
    if not digits:
        raise ValueError("Visit has no usable phone number.")
    return f"{WHATSAPP_BASE_URL}{digits}?text={quote(render_visit_message(visit), safe='')}"
