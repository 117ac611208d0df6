from __future__ import annotations

from typing import Any

from rest_framework import status as http
from rest_framework.response import Response


def ok(data: Any = None, *, status: int = http.HTTP_200_OK, **extra: Any) -> Response:
    """
    Success envelope shared by every endpoint: {success: true, data, ...extra}.
    """
    body: dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    return Response(body, status=status)
