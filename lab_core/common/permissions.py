# backend/lab_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

from lab_core.common.api.exceptions import NoCompanyAssigned

# Employee roles (lab_core.iam.models.EmployeeRole values)
ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"

ALL_ROLES = {ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_EMPLOYEE}
ADMIN_ROLES = {ROLE_SUPER_ADMIN, ROLE_ADMIN}

# higher may manage lower or equal
ROLE_RANK = {ROLE_EMPLOYEE: 0, ROLE_ADMIN: 1, ROLE_SUPER_ADMIN: 2}


def _user_roles(user) -> Set[str]:
    """
    Resolve roles from:
    1) superuser flag -> super_admin
    2) the Employee profile role

    Authenticated users without a profile get no roles.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    if getattr(user, "is_superuser", False):
        roles.add(ROLE_SUPER_ADMIN)
        return roles

    employee = getattr(user, "employee", None)
    if employee is not None and employee.role:
        roles.add(str(employee.role))

    return roles


def role_rank(user) -> int:
    """Highest rank among the user's roles; -1 when the user has none."""
    return max((ROLE_RANK.get(r, -1) for r in _user_roles(user)), default=-1)


def is_super_admin(user) -> bool:
    return ROLE_SUPER_ADMIN in _user_roles(user)


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    Key behavior:
    - Requires authentication.
    - Requires at least one company grant on the session (401 otherwise).
    - Uses allowed_roles_per_action; the action is inferred from the HTTP method
      because these endpoints are plain APIViews, not routers.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "create": ADMIN_ROLES,
        "update": ADMIN_ROLES,
        "destroy": ADMIN_ROLES,
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        method = request.method.upper()
        if method in SAFE_METHODS:
            return "list"
        if method == "POST":
            return "create"
        if method in ("PUT", "PATCH"):
            return "update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        from lab_core.iam.services.membership import session_companies

        if not session_companies(request):
            raise NoCompanyAssigned()

        roles = _user_roles(user)
        if ROLE_SUPER_ADMIN in roles:
            return True

        allowed = self.allowed_roles_per_action.get(self._infer_action(request, view))
        if allowed is not None:
            return bool(roles & allowed)

        # Unknown action => deny by default
        return False


class MasterDataPermission(BaseRolePermission):
    """Any granted employee may maintain master data in their scopes."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "create": ALL_ROLES,
        "update": ALL_ROLES,
        "destroy": ALL_ROLES,
    }


class AuditPermission(BaseRolePermission):
    """Audit logs are read-only over HTTP."""
    allowed_roles_per_action = {
        "list": ALL_ROLES,
        "create": set(),
        "update": set(),
        "destroy": set(),
    }


class EmployeeAdminPermission(BaseRolePermission):
    """Employee administration is limited to admins."""
    allowed_roles_per_action = {
        "list": ADMIN_ROLES,
        "create": ADMIN_ROLES,
        "update": ADMIN_ROLES,
        "destroy": ADMIN_ROLES,
    }
