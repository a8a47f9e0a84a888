# clinic_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Group/role names (Django auth Group names)
ROLE_ADMIN = "ADMIN"
ROLE_DOCTOR = "DOCTOR"
ROLE_RECEPTION = "RECEPTION"
ROLE_READONLY = "READONLY"

ROLE_GROUPS = [ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION, ROLE_READONLY]

ALL_ROLES = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION, ROLE_READONLY}
DESK_ROLES = {ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION}


def user_roles(user) -> Set[str]:
    """
    Resolve roles from Django groups.

    - Superuser is treated as ADMIN.
    - An authenticated user without any group is READONLY.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    if not roles:
        roles.add(ROLE_READONLY)

    return roles


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    - Requires authentication.
    - ADMIN bypass.
    - Uses allowed_roles_per_action for strict RBAC.
    - Unknown action on a SAFE request falls back to list/retrieve.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        # iam.session depends on this module
        from clinic_core.iam.session import session_for_request

        session = session_for_request(request)

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            read_action = "retrieve" if is_detail else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        # Unknown action: only ADMIN gets through
        return session.has_role(*(allowed or ()))

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class VisitPermission(BaseRolePermission):
    """Front desk registers and edits visits; the doctor marks them done."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "retrieve": ALL_ROLES,
        "today": ALL_ROLES,
        "export": ALL_ROLES,
        "create": DESK_ROLES,
        "update": DESK_ROLES,
        "partial_update": DESK_ROLES,
        "destroy": DESK_ROLES,
        "next_number": DESK_ROLES,
        "whatsapp": DESK_ROLES,
        "set_status": {ROLE_ADMIN, ROLE_DOCTOR},
    }


class ReportPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "daily": {ROLE_ADMIN, ROLE_DOCTOR},
        "date_range": {ROLE_ADMIN, ROLE_DOCTOR},
        "admin_overview": {ROLE_ADMIN},
        "admin_export": {ROLE_ADMIN},
    }


class AuditPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN},
        "retrieve": {ROLE_ADMIN},
    }
