# backend/lab_core/realtime/apps.py
from __future__ import annotations

import atexit

from django.apps import AppConfig, apps
from django.conf import settings


class RealtimeConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "lab_core.realtime"

    registry = None
    broadcaster = None

    def ready(self) -> None:
        from lab_core.realtime.broadcaster import ChangeBroadcaster
        from lab_core.realtime.connections import ConnectionRegistry

        self.registry = ConnectionRegistry(queue_size=getattr(settings, "LABOPS_SSE_QUEUE_SIZE", 100))
        self.broadcaster = ChangeBroadcaster(self.registry)
        atexit.register(self.registry.close_all)


def get_registry():
    return apps.get_app_config("realtime").registry


def get_broadcaster():
    return apps.get_app_config("realtime").broadcaster
