"""Per-form websocket fan-out for ``response:created`` events."""

from __future__ import annotations

import logging
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class Hub:
    """Tracks open dashboard sockets per form id."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[WebSocket]] = {}

    def subscribe(self, form_id: str, websocket: WebSocket) -> None:
        self._subscribers.setdefault(form_id, set()).add(websocket)
        logger.debug("Subscriber added for form %s (%d total)", form_id, self.count(form_id))

    def unsubscribe(self, form_id: str, websocket: WebSocket) -> None:
        subs = self._subscribers.get(form_id)
        if subs is None:
            return
        subs.discard(websocket)
        if not subs:
            del self._subscribers[form_id]

    def count(self, form_id: str) -> int:
        return len(self._subscribers.get(form_id, ()))

    async def broadcast(self, form_id: str, message: dict[str, Any]) -> int:
        """Send *message* to every subscriber of *form_id*.  Returns deliveries."""
        delivered = 0
        for websocket in list(self._subscribers.get(form_id, ())):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as exc:
                logger.info("Dropping dead subscriber for form %s: %s", form_id, exc)
                self.unsubscribe(form_id, websocket)
                continue
            delivered += 1
        return delivered
