# backend/lab_core/realtime/broadcaster.py
from __future__ import annotations

import logging
import queue
from typing import Any, Dict

from django.utils import timezone

from lab_core.common.scope import TenantScope
from lab_core.realtime.connections import ConnectionClosed, ConnectionRegistry

logger = logging.getLogger(__name__)

FRAME_UPDATE = "masterDataUpdate"


def build_update_frame(*, data_type: str, action: str, record: Dict[str, Any], scope: TenantScope) -> Dict[str, Any]:
    return {
        "type": FRAME_UPDATE,
        "dataType": data_type,
        "action": action.lower(),
        "record": record,
        "companyId": scope.company_id,
        "locationId": scope.location_id,
        "timestamp": timezone.now().isoformat(),
    }


class ChangeBroadcaster:
    """
    Best-effort fan-out of master-data changes to subscribers of the same scope.
    No persistence, no replay: a subscriber that misses a frame re-fetches the list.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def broadcast(self, *, data_type: str, action: str, record: Dict[str, Any], scope: TenantScope) -> int:
        """Returns the number of connections the frame was handed to."""
        frame = build_update_frame(data_type=data_type, action=action, record=record, scope=scope)

        delivered = 0
        for conn in self.registry.matching(scope):
            try:
                conn.send(frame)
            except (queue.Full, ConnectionClosed):
                logger.info("Pruning dead push connection %s", conn.connection_id)
                self.registry.unregister(conn.connection_id)
                continue
            delivered += 1

        logger.debug("Broadcast %s %s to %d connection(s)", data_type, action, delivered)
        return delivered
