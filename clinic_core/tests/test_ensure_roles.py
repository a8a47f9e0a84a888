# clinic_core/tests/test_ensure_roles.py
import pytest
from django.contrib.auth.models import Group
from django.core.management import CommandError, call_command

from clinic_core.common.permissions import ROLE_GROUPS, user_roles
from clinic_core.conftest import make_user

pytestmark = pytest.mark.django_db


def test_creates_role_groups_idempotently():
    call_command("ensure_roles")
    call_command("ensure_roles")
    assert sorted(Group.objects.values_list("name", flat=True)) == sorted(ROLE_GROUPS)


def test_assign_replaces_existing_role():
    user = make_user("desk1", "DOCTOR")

    call_command("ensure_roles", assign=["desk1=reception"])

    user.refresh_from_db()
    assert user_roles(user) == {"RECEPTION"}


def test_assign_rejects_unknown_role_or_user():
    make_user("desk1")
    with pytest.raises(CommandError):
        call_command("ensure_roles", assign=["desk1=NURSE"])
    with pytest.raises(CommandError):
        call_command("ensure_roles", assign=["ghost=DOCTOR"])
