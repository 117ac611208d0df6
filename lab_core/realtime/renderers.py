# backend/lab_core/realtime/renderers.py
from __future__ import annotations

import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder
from rest_framework.renderers import BaseRenderer


def format_event(payload: Any) -> str:
    """One server-sent event carrying a JSON payload."""
    return f"data: {json.dumps(payload, cls=DjangoJSONEncoder)}\n\n"


class EventStreamRenderer(BaseRenderer):
    """
    Lets content negotiation accept `text/event-stream`.
    Error bodies raised before the stream opens are sent as a single event.
    """
    media_type = "text/event-stream"
    format = "sse"
    charset = "utf-8"

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b""
        return format_event(data).encode(self.charset)
