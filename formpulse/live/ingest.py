"""Event ingestion loop — push channel -> normalizer -> aggregation store.

One loop instance serves one form for one connection.  Messages are handled
one at a time in delivery order: a message is fully parsed and normalized
before any of its increments reach the store, so a reader between two
deliveries never sees half an event.

Malformed messages are dropped and counted, never raised.  A dropped message
does not affect ``connected``; only the transport does.  After a disconnect
the loop is finished; start a new instance to subscribe again.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from formpulse.aggregation.normalize import normalize, normalize_unknown
from formpulse.aggregation.store import AggregationStore
from formpulse.errors import ParseError
from formpulse.live.channel import ChannelError, PushChannel
from formpulse.live.events import RESPONSE_CREATED, parse_envelope, parse_response_created
from formpulse.schema import FormField

logger = logging.getLogger(__name__)


class EventIngestionLoop:
    """Feed one form's ``response:created`` events into an aggregation store."""

    def __init__(
        self,
        form_id: str,
        fields: Sequence[FormField],
        store: AggregationStore,
        channel: PushChannel,
    ) -> None:
        self.form_id = form_id
        self._fields = {f.id: f for f in fields}
        self._store = store
        self._channel = channel
        self._connected = False
        self._started = False

        self.processed = 0
        self.ignored = 0
        self.dropped = 0

    @property
    def connected(self) -> bool:
        """True between connect acknowledgement and disconnect or error."""
        return self._connected

    async def run(self) -> None:
        """Connect, then consume messages until the channel ends.

        Returns normally on disconnect; the loop never reconnects.
        """
        if self._started:
            raise RuntimeError("ingestion loop already ran; create a new one to reconnect")
        self._started = True

        try:
            await self._channel.connect()
        except ChannelError as exc:
            logger.warning("Live updates unavailable for form %s: %s", self.form_id, exc)
            return

        self._connected = True
        logger.info("Live updates connected for form %s", self.form_id)
        try:
            async for message in self._channel.messages():
                self.handle_message(message)
        except ChannelError as exc:
            logger.warning("Live updates lost for form %s: %s", self.form_id, exc)
        finally:
            self._connected = False
            await self._channel.close()
            logger.info(
                "Live updates disconnected for form %s (%d processed, %d dropped)",
                self.form_id,
                self.processed,
                self.dropped,
            )

    async def stop(self) -> None:
        """Tear down the channel; ``run`` returns once iteration ends."""
        await self._channel.close()

    def handle_message(self, message: str | bytes) -> bool:
        """Apply one raw message to the store.  Returns True if it was counted."""
        try:
            envelope = parse_envelope(message)
        except ParseError as exc:
            self.dropped += 1
            logger.debug("Dropped message: %s", exc)
            return False

        if envelope.type != RESPONSE_CREATED:
            self.ignored += 1
            return False

        try:
            event = parse_response_created(envelope)
        except ParseError as exc:
            self.dropped += 1
            logger.debug("Dropped message: %s", exc)
            return False

        updates = []
        for answer in event.answers:
            field = self._fields.get(answer.field_id)
            if field is None:
                keys = normalize_unknown(answer.value)
            else:
                keys = normalize(field, answer.value)
            updates.append((answer.field_id, keys))

        for field_id, keys in updates:
            self._store.ingest(field_id, keys)
        self.processed += 1
        return True
