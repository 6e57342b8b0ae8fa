"""
Tests for live-update fan-out and admin notifications.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
from fastapi import WebSocketDisconnect

from hrchat.cache.cache import CacheClient
from hrchat.core.intents import Requester
from hrchat.realtime.broadcaster import ADMIN_ROOM, AdminNotifier, Broadcaster

ADMIN = Requester("root", "admin")
ALICE = Requester("alice", "user")


class FakeWebSocket:
    """Just enough of a Starlette WebSocket for Broadcaster.serve."""

    def __init__(self):
        self.incoming = asyncio.Queue()
        self.sent = []

    async def receive_text(self):
        message = await self.incoming.get()
        if message is None:
            raise WebSocketDisconnect(code=1000)
        return message

    async def send_json(self, data):
        self.sent.append(data)


async def _next(client):
    return await asyncio.wait_for(client.queue.get(), timeout=1)


# ── Fan-out ─────────────────────────────────────────────────────────────

def test_emit_reaches_every_client():
    async def scenario():
        broadcaster = Broadcaster()
        first = broadcaster.register(FakeWebSocket(), ADMIN)
        second = broadcaster.register(FakeWebSocket(), None)
        broadcaster.emit("CREATE")
        return await _next(first), await _next(second)

    first, second = asyncio.run(scenario())
    assert first == second
    assert first["event"] == "data_update"
    assert first["type"] == "CREATE"
    assert "timestamp" in first


def test_emit_from_worker_thread():
    """Sync routes run in a threadpool; emit must not need the loop's thread."""
    async def scenario():
        broadcaster = Broadcaster()
        client = broadcaster.register(FakeWebSocket(), ALICE)
        await asyncio.get_running_loop().run_in_executor(None, broadcaster.emit, "DELETE")
        return await _next(client)

    assert asyncio.run(scenario())["type"] == "DELETE"


def test_rooms():
    async def scenario():
        broadcaster = Broadcaster()
        admin = broadcaster.register(FakeWebSocket(), ADMIN)
        user = broadcaster.register(FakeWebSocket(), ALICE)
        joined = (broadcaster.join(admin, ADMIN_ROOM), broadcaster.join(user, ADMIN_ROOM))
        broadcaster.notify_room(ADMIN_ROOM, "notification", {"message": "hi"})
        payload = await _next(admin)
        return joined, payload, user.queue.qsize()

    joined, payload, user_pending = asyncio.run(scenario())
    assert joined == (True, False)
    assert payload == {"event": "notification", "data": {"message": "hi"}}
    assert user_pending == 0


def test_serve_handles_join_and_disconnect():
    async def scenario():
        broadcaster = Broadcaster()
        websocket = FakeWebSocket()
        client = broadcaster.register(websocket, ADMIN)
        task = asyncio.create_task(broadcaster.serve(client))

        await websocket.incoming.put("join-admin")
        await asyncio.sleep(0.05)
        broadcaster.notify_room(ADMIN_ROOM, "notification", {"n": 1})
        await asyncio.sleep(0.05)

        await websocket.incoming.put(None)
        with pytest.raises(WebSocketDisconnect):
            await task
        return websocket.sent, broadcaster.client_count

    sent, remaining = asyncio.run(scenario())
    assert sent == [{"event": "notification", "data": {"n": 1}}]
    assert remaining == 0


def test_serve_collects_failed_sender():
    class BrokenWebSocket(FakeWebSocket):
        async def send_json(self, data):
            raise RuntimeError("socket closed")

    async def scenario():
        broadcaster = Broadcaster()
        websocket = BrokenWebSocket()
        client = broadcaster.register(websocket, ALICE)
        task = asyncio.create_task(broadcaster.serve(client))

        broadcaster.emit("UPDATE")
        await asyncio.sleep(0.05)

        await websocket.incoming.put(None)
        with pytest.raises(WebSocketDisconnect):
            await task
        return broadcaster.client_count

    with patch("hrchat.realtime.broadcaster.logger") as logger:
        remaining = asyncio.run(scenario())
    assert remaining == 0
    logger.warning.assert_called_once()
    assert "socket closed" in logger.warning.call_args[0][0]


# ── Admin notifications ─────────────────────────────────────────────────

class TestAdminNotifier:
    def test_non_admin_mutation(self):
        broadcaster, cache = MagicMock(spec=Broadcaster), MagicMock(spec=CacheClient)
        notifier = AdminNotifier(broadcaster, cache, limit=50)

        notification = notifier.notify(ALICE, "CREATE", {"id": "6", "name": "Zed"})

        assert notification["type"] == "CREATE"
        assert notification["message"] == "User alice created employee Zed"
        assert notification["data"]["user"] == "alice"
        broadcaster.notify_room.assert_called_once_with(ADMIN_ROOM, "notification", notification)
        cache.push_notification.assert_called_once_with(notification, limit=50)

    def test_admin_mutation_is_silent(self):
        broadcaster, cache = MagicMock(spec=Broadcaster), MagicMock(spec=CacheClient)
        assert AdminNotifier(broadcaster, cache).notify(ADMIN, "DELETE", {"name": "Zed"}) is None
        broadcaster.notify_room.assert_not_called()
        cache.push_notification.assert_not_called()

    def test_broadcast_failure_still_stores(self):
        broadcaster, cache = MagicMock(spec=Broadcaster), MagicMock(spec=CacheClient)
        broadcaster.notify_room.side_effect = RuntimeError("closed")
        AdminNotifier(broadcaster, cache).notify(ALICE, "UPDATE", {"name": "Zed"})
        cache.push_notification.assert_called_once()
