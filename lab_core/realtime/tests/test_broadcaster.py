# backend/lab_core/realtime/tests/test_broadcaster.py
import queue
import re

from lab_core.common.scope import TenantScope
from lab_core.realtime.broadcaster import FRAME_UPDATE
from lab_core.realtime.connections import CLOSE_SENTINEL

C1L1 = TenantScope("C1", "L1")
C1L2 = TenantScope("C1", "L2")
C2L1 = TenantScope("C2", "L1")


def _drain(conn):
    frames = []
    while True:
        try:
            frames.append(conn.queue.get_nowait())
        except queue.Empty:
            return frames


def test_frames_reach_only_the_same_scope(registry, broadcaster):
    here = registry.register(user_id="alice", scope=C1L1)
    other_location = registry.register(user_id="bob", scope=C1L2)
    other_company = registry.register(user_id="carol", scope=C2L1)

    delivered = broadcaster.broadcast(data_type="apis", action="CREATE", record={"api": "X"}, scope=C1L1)

    assert delivered == 1
    [frame] = _drain(here)
    assert frame["type"] == FRAME_UPDATE
    assert frame["dataType"] == "apis"
    assert frame["action"] == "create"
    assert frame["record"] == {"api": "X"}
    assert (frame["companyId"], frame["locationId"]) == ("C1", "L1")
    assert frame["timestamp"]
    assert _drain(other_location) == []
    assert _drain(other_company) == []


def test_no_subscribers_is_not_an_error(broadcaster):
    assert broadcaster.broadcast(data_type="apis", action="DELETE", record={}, scope=C1L1) == 0


def test_full_queue_is_pruned_and_others_still_receive(registry, broadcaster):
    slow = registry.register(user_id="slow", scope=C1L1)
    fast = registry.register(user_id="fast", scope=C1L1)
    for _ in range(registry.queue_size):
        slow.queue.put_nowait({"type": "ping"})

    delivered = broadcaster.broadcast(data_type="makes", action="UPDATE", record={}, scope=C1L1)

    assert delivered == 1
    assert slow.connection_id not in registry
    assert slow.closed
    assert fast.connection_id in registry
    assert _drain(fast)[0]["action"] == "update"


def test_closed_connection_is_pruned(registry, broadcaster):
    conn = registry.register(user_id="alice", scope=C1L1)
    conn.close()

    assert broadcaster.broadcast(data_type="makes", action="CREATE", record={}, scope=C1L1) == 0
    assert len(registry) == 0


def test_connection_ids(registry):
    first = registry.register(user_id="alice", scope=C1L1)
    second = registry.register(user_id="alice", scope=C1L1)

    assert re.fullmatch(r"alice-C1-L1-\d+", first.connection_id)
    assert first.connection_id != second.connection_id
    assert len(registry) == 2


def test_unregister_wakes_the_reader(registry):
    conn = registry.register(user_id="alice", scope=C1L1)

    assert registry.unregister(conn.connection_id) is conn
    assert registry.unregister(conn.connection_id) is None
    assert conn.queue.get_nowait() is CLOSE_SENTINEL


def test_close_all(registry):
    conns = [registry.register(user_id=u, scope=C1L1) for u in ("a", "b", "c")]

    assert registry.close_all() == 3
    assert len(registry) == 0
    assert all(c.closed for c in conns)
    assert registry.close_all() == 0
