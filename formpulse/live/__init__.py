"""Live updates — push-channel envelopes and the event ingestion loop."""

from formpulse.live.channel import ChannelError, PushChannel, WebSocketChannel, channel_url
from formpulse.live.events import RESPONSE_CREATED, Envelope, ResponseCreated, parse_envelope
from formpulse.live.ingest import EventIngestionLoop

__all__ = [
    "RESPONSE_CREATED",
    "ChannelError",
    "Envelope",
    "EventIngestionLoop",
    "PushChannel",
    "ResponseCreated",
    "WebSocketChannel",
    "channel_url",
    "parse_envelope",
]
