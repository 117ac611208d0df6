# backend/lab_core/iam/api/auth.py

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.serializers import TokenRefreshSerializer

from lab_core.common.api.responses import ok
from lab_core.common.scope import require_mapping
from lab_core.iam.api.serializers import (
    ChangePasswordSerializer,
    DetailResponseSerializer,
    LabTokenObtainPairSerializer,
    LoginRequestSerializer,
)

logger = logging.getLogger(__name__)


def _seconds(value: Any) -> int:
    """
    Convert a JWT lifetime setting into seconds.
    Supports timedelta OR int/float (already seconds).
    """
    if isinstance(value, timedelta):
        return int(value.total_seconds())
    try:
        return int(value)
    except (TypeError, ValueError):
        # 0 means "session cookie"
        return 0


def _cookie_names() -> tuple[str, str]:
    jwt_cfg = getattr(settings, "SIMPLE_JWT", {}) or {}
    return jwt_cfg.get("AUTH_COOKIE", "lab_access"), jwt_cfg.get("AUTH_COOKIE_REFRESH", "lab_refresh")


def _set_auth_cookies(response: Response, *, access: str, refresh: str) -> None:
    jwt_cfg = getattr(settings, "SIMPLE_JWT", {}) or {}
    access_name, refresh_name = _cookie_names()

    secure = bool(jwt_cfg.get("AUTH_COOKIE_SECURE", False))
    samesite = jwt_cfg.get("AUTH_COOKIE_SAMESITE", "Lax")

    for name, value, lifetime in (
        (access_name, access, jwt_cfg.get("ACCESS_TOKEN_LIFETIME", timedelta(minutes=30))),
        (refresh_name, refresh, jwt_cfg.get("REFRESH_TOKEN_LIFETIME", timedelta(days=1))),
    ):
        response.set_cookie(
            name,
            value,
            max_age=_seconds(lifetime),
            httponly=True,
            secure=secure,
            samesite=samesite,
            path="/",
        )


def _clear_auth_cookies(response: Response) -> None:
    for name in _cookie_names():
        response.delete_cookie(name, path="/")


class PublicAuthView(APIView):
    """
    Login and refresh skip authentication so a stale cookie cannot block them.
    Bad credentials still answer 401 with a Bearer challenge.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return 'Bearer realm="api"'


class LoginView(PublicAuthView):
    @extend_schema(request=LoginRequestSerializer, responses={200: DetailResponseSerializer}, tags=["Auth"])
    def post(self, request):
        body = require_mapping(request.data)
        data = {
            "username": str(body.get("username") or "").strip().lower(),
            "password": body.get("password"),
        }
        serializer = LabTokenObtainPairSerializer(data=data)
        serializer.is_valid(raise_exception=True)

        logger.info("User %s logged in", data["username"])

        res = Response({"success": True, "detail": "login ok"}, status=status.HTTP_200_OK)
        _set_auth_cookies(
            res,
            access=serializer.validated_data["access"],
            refresh=serializer.validated_data["refresh"],
        )
        return res


class RefreshView(PublicAuthView):
    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["Auth"])
    def post(self, request):
        _, refresh_cookie_name = _cookie_names()
        refresh = request.COOKIES.get(refresh_cookie_name) or require_mapping(request.data).get("refresh")

        serializer = TokenRefreshSerializer(data={"refresh": refresh})
        serializer.is_valid(raise_exception=True)

        access = serializer.validated_data["access"]
        new_refresh = serializer.validated_data.get("refresh", refresh)

        res = Response({"success": True, "detail": "refreshed"}, status=status.HTTP_200_OK)
        _set_auth_cookies(res, access=access, refresh=new_refresh)
        return res


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: DetailResponseSerializer}, tags=["Auth"])
    def post(self, request):
        res = Response({"success": True, "detail": "logged out"}, status=status.HTTP_200_OK)
        _clear_auth_cookies(res)
        return res


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=ChangePasswordSerializer, responses={200: DetailResponseSerializer}, tags=["Auth"])
    def post(self, request):
        serializer = ChangePasswordSerializer(data=require_mapping(request.data), context={"request": request})
        serializer.is_valid(raise_exception=True)

        user = request.user
        user.set_password(serializer.validated_data["newPassword"])
        user.save(update_fields=["password"])

        logger.info("User %s changed their password", user.username)
        return ok(None, message="Password updated successfully")
