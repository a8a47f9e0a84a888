# config/settings/test.py
from .base import *  # noqa

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CLINIC_PROFILE = {
    "name": "Test Clinic",
    "address": "1 Main Road",
    "hours": "9:00 AM - 9:00 PM",
    "doctor": "Dr. Rao",
}
CLINIC_ASSUMED_HEIGHT_M = 1.7

LOGGING["loggers"]["clinic_core"]["level"] = "DEBUG"  # noqa: F405
