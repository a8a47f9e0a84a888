# clinic_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from clinic_core.common.permissions import ROLE_ADMIN, ROLE_DOCTOR, ROLE_READONLY, ROLE_RECEPTION


def make_user(username, *roles, password="testpass"):
    User = get_user_model()
    user = User.objects.create_user(username=username, password=password, is_active=True)
    for role in roles:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


def client_for(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def admin_user(db):
    return make_user("admin", ROLE_ADMIN)


@pytest.fixture
def doctor_user(db):
    return make_user("doctor", ROLE_DOCTOR)


@pytest.fixture
def reception_user(db):
    return make_user("reception", ROLE_RECEPTION)


@pytest.fixture
def readonly_user(db):
    return make_user("viewer", ROLE_READONLY)


@pytest.fixture
def admin_client(admin_user):
    return client_for(admin_user)


@pytest.fixture
def doctor_client(doctor_user):
    return client_for(doctor_user)


@pytest.fixture
def reception_client(reception_user):
    return client_for(reception_user)


@pytest.fixture
def readonly_client(readonly_user):
    return client_for(readonly_user)


@pytest.fixture
def visit_payload():
    return {
        "name": "Asha Verma",
        "age": 34,
        "phone": "+91 98765 43210",
        "weight": 62.5,
        "temperature": 98.6,
        "gender": "female",
        "additional_info": "fever since 2 days",
    }
