"""Shared test fixtures for Formpulse tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest

from formpulse.live.channel import ChannelError
from formpulse.schema import FormField, parse_fields

_HANG_UP = object()


class FakeChannel:
    """In-memory push channel: tests push raw messages, the loop consumes them."""

    def __init__(self, messages: tuple[str | bytes, ...] = (), *, refuse: bool = False) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        for message in messages:
            self._queue.put_nowait(message)
        self._refuse = refuse
        self.opened = False
        self.closed = False

    async def connect(self) -> None:
        if self._refuse:
            raise ChannelError("connection refused")
        self.opened = True

    async def messages(self) -> AsyncIterator[str | bytes]:
        while True:
            item = await self._queue.get()
            if item is _HANG_UP:
                return
            if isinstance(item, Exception):
                raise item
            yield item  # type: ignore[misc]

    def push(self, message: str | bytes) -> None:
        self._queue.put_nowait(message)

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    def hang_up(self) -> None:
        self._queue.put_nowait(_HANG_UP)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_HANG_UP)


@pytest.fixture
def survey_fields() -> list[FormField]:
    """One field of every variant, in a fixed order."""
    return parse_fields(
        [
            {"id": "name", "type": "text", "label": "Your name", "required": True},
            {"id": "notes", "type": "textarea", "label": "Anything else?"},
            {
                "id": "q1",
                "type": "mcq",
                "label": "How useful was it?",
                "required": True,
                "options": ["Very", "Somewhat", "Not at all"],
            },
            {
                "id": "q2",
                "type": "checkbox",
                "label": "Which parts did you use?",
                "options": ["Very", "Somewhat", "Builder"],
            },
            {"id": "score", "type": "rating", "label": "Overall score", "min": 1, "max": 5},
        ]
    )


@pytest.fixture
def survey_form_doc(survey_fields: list[FormField]) -> dict[str, object]:
    """Wire document for a published form built from ``survey_fields``."""
    return {
        "_id": "65f0c0ffee0000000000abcd",
        "title": "Launch feedback",
        "description": "Tell us how it went",
        "status": "published",
        "fields": [f.model_dump(mode="json") for f in survey_fields],
    }


@pytest.fixture
def make_channel() -> type[FakeChannel]:
    """The in-memory channel class, for tests that build several."""
    return FakeChannel
