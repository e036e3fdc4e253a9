"""
RADIO RELAY v1.0 — WebSocket Manager
One entry per live socket, addressed by the session id handed out on connect.
Frames are JSON: {"event": <name>, "data": {...}}.
"""

import json
import logging
import uuid

from fastapi import WebSocket

logger = logging.getLogger("radio.web")


class ConnectionManager:
    """Manages active WebSocket connections and routes events to them."""

    def __init__(self):
        self.active: dict[str, WebSocket] = {}

    async def connect(self, ws: WebSocket) -> str:
        await ws.accept()
        session_id = uuid.uuid4().hex
        self.active[session_id] = ws
        return session_id

    def disconnect(self, session_id: str):
        self.active.pop(session_id, None)

    async def send(self, session_id: str, event: str, data: dict = None):
        """Send an event to one connection. Unknown ids are ignored."""
        ws = self.active.get(session_id)
        if ws is None:
            return
        message = json.dumps({"event": event, "data": data or {}})
        try:
            await ws.send_text(message)
        except Exception as e:
            logger.info(f"Dropping {session_id} after failed send: {e}")
            self.disconnect(session_id)

    async def broadcast(self, event: str, data: dict = None):
        """Send an event to all connected clients."""
        for session_id in list(self.active):
            await self.send(session_id, event, data)

    @property
    def client_count(self) -> int:
        return len(self.active)
