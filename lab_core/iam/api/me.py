# backend/lab_core/iam/api/me.py

from __future__ import annotations

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from lab_core.common.api.responses import ok
from lab_core.iam.services.membership import session_companies


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        """
        Returns the session: user info, role and company/location grants.
        """
        user = request.user
        employee = getattr(user, "employee", None)

        return ok(
            {
                "userId": user.username,
                "name": employee.name if employee is not None else user.get_full_name(),
                "email": getattr(user, "email", None),
                "role": employee.role if employee is not None else None,
                "isSuperuser": bool(getattr(user, "is_superuser", False)),
                "companies": session_companies(request),
            }
        )
