# clinic_core/common/management/commands/ensure_roles.py

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from clinic_core.common.permissions import ROLE_GROUPS


class Command(BaseCommand):
    help = (
        "Create the clinic role groups (idempotent). "
        "Optionally put staff accounts in a role: --assign reception1=RECEPTION"
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--assign",
            action="append",
            default=[],
            metavar="USERNAME=ROLE",
            help="Replace the user's role groups with ROLE. Repeatable.",
        )

    def _parse_assignment(self, raw: str) -> tuple[str, str]:
        username, sep, role = raw.partition("=")
        role = role.strip().upper()
        if not sep or not username.strip():
            raise CommandError(f"Invalid --assign value {raw!r} (USERNAME=ROLE expected)")
        if role not in ROLE_GROUPS:
            raise CommandError(f"Unknown role {role!r}; choose from {', '.join(ROLE_GROUPS)}")
        return username.strip(), role

    @transaction.atomic
    def handle(self, *args, **options):
        assignments = [self._parse_assignment(a) for a in options["assign"]]

        created = 0
        groups = {}
        for name in ROLE_GROUPS:
            groups[name], was_created = Group.objects.get_or_create(name=name)
            created += 1 if was_created else 0

        User = get_user_model()
        for username, role in assignments:
            try:
                user = User.objects.get(username=username)
            except User.DoesNotExist:
                raise CommandError(f"User {username!r} does not exist")

            # one clinic role per account
            user.groups.remove(*[g for n, g in groups.items() if n != role])
            user.groups.add(groups[role])
            self.stdout.write(f"{username} -> {role}")

        self.stdout.write(self.style.SUCCESS(f"Roles ensured. Newly created: {created}"))
