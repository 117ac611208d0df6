# backend/lab_core/realtime/api/views.py
from __future__ import annotations

import logging
import queue
from typing import Iterator

from django.conf import settings
from django.http import StreamingHttpResponse
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.renderers import JSONRenderer
from rest_framework.views import APIView

from lab_core.common.permissions import MasterDataPermission
from lab_core.common.scope import require_scope_params
from lab_core.iam.scope import assert_scope_granted
from lab_core.realtime.apps import get_registry
from lab_core.realtime.connections import CLOSE_SENTINEL, Connection, ConnectionRegistry
from lab_core.realtime.renderers import EventStreamRenderer, format_event

logger = logging.getLogger(__name__)


def event_stream(registry: ConnectionRegistry, conn: Connection, *, heartbeat: float) -> Iterator[str]:
    """
    connected frame first, then queued updates; a ping whenever the queue stays
    quiet for `heartbeat` seconds. Always unregisters on exit.
    """
    try:
        yield format_event(
            {
                "type": "connected",
                "connectionId": conn.connection_id,
                "companyId": conn.scope.company_id,
                "locationId": conn.scope.location_id,
                "timestamp": timezone.now().isoformat(),
            }
        )
        while not conn.closed:
            try:
                frame = conn.queue.get(timeout=heartbeat)
            except queue.Empty:
                yield format_event({"type": "ping", "timestamp": timezone.now().isoformat()})
                continue
            if frame is CLOSE_SENTINEL:
                break
            yield format_event(frame)
    finally:
        registry.unregister(conn.connection_id)


class MasterDataStreamView(APIView):
    """
    Long-lived server-sent event stream of master-data changes for one scope.
    """
    permission_classes = [MasterDataPermission]
    renderer_classes = [JSONRenderer, EventStreamRenderer]

    # injected in tests; defaults to the process registry owned by the app config
    registry: ConnectionRegistry | None = None

    def get_registry(self) -> ConnectionRegistry:
        return self.registry if self.registry is not None else get_registry()

    @extend_schema(
        tags=["Realtime"],
        parameters=[
            OpenApiParameter("companyId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
            OpenApiParameter("locationId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
        ],
        responses={(200, "text/event-stream"): OpenApiTypes.STR},
    )
    def get(self, request):
        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        registry = self.get_registry()
        conn = registry.register(user_id=request.user.username, scope=scope)

        heartbeat = float(getattr(settings, "LABOPS_SSE_HEARTBEAT_SECONDS", 30))
        response = StreamingHttpResponse(
            event_stream(registry, conn, heartbeat=heartbeat),
            content_type="text/event-stream",
        )
        response["Cache-Control"] = "no-cache, no-transform"
        response["X-Accel-Buffering"] = "no"
        return response
