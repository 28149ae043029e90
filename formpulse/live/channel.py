"""Push-channel transport.

``PushChannel`` is the seam the ingestion loop talks to: connect once, iterate
messages in delivery order, close.  ``WebSocketChannel`` is the production
implementation, subscribing to ``<ws_base>?formId=<id>``.

There is no reconnect logic here.  When the socket drops, iteration ends and
the channel stays closed.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Protocol

import httpx
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosedError, InvalidHandshake, InvalidURI

from formpulse.errors import FormpulseError

logger = logging.getLogger(__name__)


class ChannelError(FormpulseError):
    """The push channel could not be opened or failed mid-stream."""


class PushChannel(Protocol):
    async def connect(self) -> None: ...

    def messages(self) -> AsyncIterator[str | bytes]: ...

    async def close(self) -> None: ...


def channel_url(ws_base: str, form_id: str) -> str:
    """Subscription URL for one form."""
    return str(httpx.URL(ws_base, params={"formId": form_id}))


class WebSocketChannel:
    """A single websocket subscription to one form's events."""

    def __init__(self, ws_base: str, form_id: str, *, open_timeout: float = 10.0) -> None:
        self.url = channel_url(ws_base, form_id)
        self._open_timeout = open_timeout
        self._conn: ClientConnection | None = None

    async def connect(self) -> None:
        try:
            self._conn = await connect(self.url, open_timeout=self._open_timeout)
        except (OSError, TimeoutError, InvalidURI, InvalidHandshake) as exc:
            raise ChannelError(f"could not connect to {self.url}: {exc}") from exc
        logger.debug("Connected to %s", self.url)

    async def messages(self) -> AsyncIterator[str | bytes]:
        if self._conn is None:
            raise ChannelError("channel is not connected")
        try:
            async for message in self._conn:
                yield message
        except ConnectionClosedError as exc:
            raise ChannelError(f"connection to {self.url} lost: {exc}") from exc

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            logger.debug("Closed %s", self.url)
