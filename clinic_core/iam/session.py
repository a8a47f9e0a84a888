# clinic_core/iam/session.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import FrozenSet, Optional

from clinic_core.common.permissions import ROLE_ADMIN, ROLE_DOCTOR, ROLE_READONLY, ROLE_RECEPTION, user_roles

# Highest first: decides the landing view of the UI
ROLE_PRECEDENCE = (ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION, ROLE_READONLY)

LANDING_VIEWS = {
    ROLE_ADMIN: "admin",
    ROLE_DOCTOR: "doctor",
    ROLE_RECEPTION: "register",
    ROLE_READONLY: "visits",
}


@dataclass(frozen=True)
class ClinicSession:
    """
    Per-request session built by the authentication class.

    Lives on request.clinic_session for the duration of one request; nothing
    about the logged-in user is kept in process-wide state.
    """
    user_id: int
    username: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    expires_at: Optional[datetime] = None

    @property
    def role(self) -> str:
        for r in ROLE_PRECEDENCE:
            if r in self.roles:
                return r
        return ROLE_READONLY

    @property
    def landing_view(self) -> str:
        return LANDING_VIEWS[self.role]

    def has_role(self, *roles: str) -> bool:
        return ROLE_ADMIN in self.roles or any(r in self.roles for r in roles)

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "role": self.role,
            "roles": sorted(self.roles),
            "landing_view": self.landing_view,
            "expires_at": self.expires_at,
        }


def _token_expiry(token) -> Optional[datetime]:
    if token is None:
        return None
    try:
        exp = token["exp"]
    except (KeyError, TypeError):
        return None
    return datetime.fromtimestamp(int(exp), tz=dt_timezone.utc)


def build_session(user, token=None) -> ClinicSession:
    return ClinicSession(
        user_id=user.id,
        username=user.get_username(),
        roles=frozenset(user_roles(user)),
        expires_at=_token_expiry(token),
    )


def session_for_request(request) -> ClinicSession | None:
    """
    Session attached by authentication, or one built on demand for an
    authenticated user (e.g. force_authenticate in tests).
    """
    session = getattr(request, "clinic_session", None)
    if session is not None:
        return session

    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return None

    session = build_session(user, getattr(request, "auth", None))
    request.clinic_session = session
    return session
