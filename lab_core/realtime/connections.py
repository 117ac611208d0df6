# backend/lab_core/realtime/connections.py
from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from lab_core.common.scope import TenantScope

logger = logging.getLogger(__name__)

# queued after close() so a blocked reader wakes up and exits
CLOSE_SENTINEL = None


class ConnectionClosed(Exception):
    pass


@dataclass
class Connection:
    """
    One live push subscriber. Frames are handed over through a bounded queue
    that the stream generator drains.
    """
    connection_id: str
    user_id: str
    scope: TenantScope
    queue: "queue.Queue[Optional[Dict[str, Any]]]"
    connected_at: float = field(default_factory=time.time)
    closed: bool = False

    def send(self, frame: Dict[str, Any]) -> None:
        """Raises ConnectionClosed or queue.Full when the subscriber cannot take the frame."""
        if self.closed:
            raise ConnectionClosed(self.connection_id)
        self.queue.put_nowait(frame)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.queue.put_nowait(CLOSE_SENTINEL)
        except queue.Full:
            # reader checks `closed` after every wakeup
            pass


class ConnectionRegistry:
    """
    Process-local set of open push connections.
    Safe to share between request threads; every access holds the lock.
    """

    def __init__(self, *, queue_size: int = 100):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._connections: Dict[str, Connection] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._connections

    def register(self, *, user_id: str, scope: TenantScope) -> Connection:
        base_id = f"{user_id}-{scope.company_id}-{scope.location_id}-{int(time.time() * 1000)}"
        with self._lock:
            connection_id = base_id
            n = 1
            while connection_id in self._connections:
                connection_id = f"{base_id}-{n}"
                n += 1

            conn = Connection(
                connection_id=connection_id,
                user_id=str(user_id),
                scope=scope,
                queue=queue.Queue(maxsize=self.queue_size),
            )
            self._connections[connection_id] = conn

        logger.info("Push connection %s opened", connection_id)
        return conn

    def unregister(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            conn = self._connections.pop(connection_id, None)
        if conn is not None:
            conn.close()
            logger.info("Push connection %s closed", connection_id)
        return conn

    def matching(self, scope: TenantScope) -> list[Connection]:
        with self._lock:
            return [c for c in self._connections.values() if c.scope == scope]

    def close_all(self) -> int:
        with self._lock:
            conns = list(self._connections.values())
            self._connections.clear()
        for conn in conns:
            conn.close()
        if conns:
            logger.info("Closed %d push connection(s) on shutdown", len(conns))
        return len(conns)
