# backend/lab_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.conf import settings
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Safe to call from middleware and DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(
    *,
    request=None,
    code: str,
    message: str,
    details: Any = None,
    validation_errors: list[str] | None = None,
) -> dict[str, Any]:
    """
    Canonical error envelope: {success: false, error, code, requestId, ...}.
    Reusable from plain Django views (JsonResponse) and DRF (Response).
    """
    body: dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code,
        "requestId": ensure_request_id(request),
    }
    if validation_errors is not None:
        body["validationErrors"] = validation_errors
    if details is not None:
        body["details"] = details
    return body


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Raised on unique-key collisions within a tenant scope.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class NoCompanyAssigned(NotAuthenticated):
    """
    Session is valid but carries no company grant at all.
    Rendered as 401 like a missing session.
    """
    default_detail = "Unauthorized or no company assigned"
    default_code = "no_company_assigned"


def flatten_errors(detail: Any, prefix: str = "") -> list[str]:
    """
    DRF nests errors as dict/list trees; the client wants a flat list of messages.
    Nested list items (e.g. column descriptions) are prefixed with their position,
    whether DRF reports them as a list or as a dict keyed by item index.
    """
    if isinstance(detail, dict):
        out: list[str] = []
        for key, value in detail.items():
            if isinstance(key, int):
                out.extend(flatten_errors(value, f"{prefix}Item {key + 1}: "))
            else:
                out.extend(flatten_errors(value, prefix))
        return out
    if isinstance(detail, (list, tuple)):
        out = []
        for idx, item in enumerate(detail):
            if isinstance(item, dict):
                out.extend(flatten_errors(item, f"{prefix}Item {idx + 1}: "))
            else:
                out.extend(flatten_errors(item, prefix))
        return out
    return [f"{prefix}{detail}"]


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NoCompanyAssigned):
        return "no_company_assigned"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, (Http404, NotFound)):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s",
            view.__class__.__name__ if view is not None else "view",
        )
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Server error",
                details=str(exc) if settings.DEBUG else None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)
    data = response.data

    if isinstance(exc, ValidationError):
        messages = flatten_errors(data)
        return Response(
            build_error_envelope(
                request=request,
                code=code,
                message=", ".join(messages) or "Request failed.",
                validation_errors=messages,
            ),
            status=http_status,
            headers=response.headers,
        )

    # Message + details rules:
    # 1) If {"detail": "..."} only -> message=detail, details=None
    # 2) If {"detail": "...", ...} -> message=detail, details={...without detail}
    # 3) Otherwise -> message="Request failed.", details=data
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
