"""
Live-update channel: fire-and-forget fan-out to connected WebSocket clients.

Chat routes are synchronous and run in FastAPI's threadpool, so emission
never awaits a socket. Each client owns an asyncio.Queue drained by its
connection coroutine; emit() hands payloads to the client's loop with
call_soon_threadsafe and returns immediately.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from hrchat.core.intents import Requester
from hrchat.utils.logger import get_logger

logger = get_logger("realtime.broadcaster")

ADMIN_ROOM = "admin"
DATA_UPDATE_EVENT = "data_update"
NOTIFICATION_EVENT = "notification"
EVENT_TYPES = ("CREATE", "UPDATE", "DELETE")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(eq=False)
class Client:
    """One connected socket."""
    websocket: WebSocket
    requester: Optional[Requester]
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    rooms: Set[str] = field(default_factory=set)


class Broadcaster:
    """In-process registry of live clients."""

    def __init__(self):
        self._clients: List[Client] = []
        self._lock = threading.Lock()

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def register(self, websocket: WebSocket, requester: Optional[Requester] = None) -> Client:
        """Register a socket; must be called from the socket's event loop."""
        client = Client(websocket=websocket, requester=requester, loop=asyncio.get_running_loop())
        with self._lock:
            self._clients.append(client)
        logger.info(f"Live client connected ({requester.username if requester else 'anonymous'})")
        return client

    def unregister(self, client: Client) -> None:
        with self._lock:
            if client in self._clients:
                self._clients.remove(client)
        logger.info("Live client disconnected")

    def join(self, client: Client, room: str) -> bool:
        """Join a room. Only admins may join the admin room."""
        if room == ADMIN_ROOM and not (client.requester and client.requester.is_admin):
            logger.warning(f"Rejected join of room {room!r} by non-admin client")
            return False
        client.rooms.add(room)
        return True

    def emit(self, event_type: str) -> None:
        """Tell every client that employee data changed."""
        self._publish({"event": DATA_UPDATE_EVENT, "type": event_type, "timestamp": _now_iso()})

    def notify_room(self, room: str, event: str, data: Dict[str, Any]) -> None:
        self._publish({"event": event, "data": data}, room=room)

    def _publish(self, payload: Dict[str, Any], room: Optional[str] = None) -> None:
        with self._lock:
            targets = [c for c in self._clients if room is None or room in c.rooms]
        for client in targets:
            try:
                client.loop.call_soon_threadsafe(client.queue.put_nowait, payload)
            except RuntimeError:
                # Loop already closed; the connection coroutine will unregister it
                logger.debug("Skipping client with closed event loop")

    async def serve(self, client: Client) -> None:
        """
        Run one connection: forward queued payloads to the socket and handle
        incoming control messages ("join-admin") until the client disconnects.
        """
        sender = asyncio.create_task(self._drain(client))
        try:
            while True:
                message = await client.websocket.receive_text()
                if message.strip() == "join-admin":
                    self.join(client, ADMIN_ROOM)
        finally:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning(f"Live client send failed: {e}")
            self.unregister(client)

    @staticmethod
    async def _drain(client: Client) -> None:
        while True:
            payload = await client.queue.get()
            await client.websocket.send_json(payload)


class AdminNotifier:
    """
    Tells admins about mutations made by non-admin users: a live
    "notification" event to the admin room plus a stored copy in Redis.
    """

    def __init__(self, broadcaster: Broadcaster, cache, limit: int = 100):
        self.broadcaster = broadcaster
        self.cache = cache
        self.limit = limit

    def notify(self, requester: Requester, action: str, employee: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Returns the notification sent, or None for admin requesters."""
        if requester.is_admin:
            return None

        verb = {"CREATE": "created", "UPDATE": "updated", "DELETE": "deleted"}.get(action, action.lower())
        notification = {
            "type": action,
            "message": f"User {requester.username} {verb} employee {employee.get('name')}",
            "data": {"employee": employee, "user": requester.username},
            "timestamp": _now_iso(),
        }
        try:
            self.broadcaster.notify_room(ADMIN_ROOM, NOTIFICATION_EVENT, notification)
        except Exception as e:
            logger.error(f"Admin notification broadcast failed: {e}")
        if self.cache is not None:
            self.cache.push_notification(notification, limit=self.limit)
        return notification
