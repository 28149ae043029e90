"""Live dashboard session — one form, one store, one push subscription.

``start`` fetches the form schema, then runs the analytics summary fetch and
the channel subscription side by side.  Whichever finishes first, the store
ends up with summary + every event received since connecting: events that beat
the summary are buffered by the store and replayed on ``initialize``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from formpulse.aggregation.store import AggregationStore, Snapshot
from formpulse.api_client import FormsClient
from formpulse.live.channel import PushChannel
from formpulse.live.ingest import EventIngestionLoop
from formpulse.schema import CheckboxField, Form, FormField, McqField, RatingField

logger = logging.getLogger(__name__)


@dataclass
class FieldRows:
    """One field's buckets, ready to print."""

    field_id: str
    label: str
    buckets: list[tuple[str, int]]

    @property
    def total(self) -> int:
        return sum(count for _, count in self.buckets)


class DashboardSession:
    """Owns the store and ingestion loop for one dashboard view."""

    def __init__(
        self,
        form_id: str,
        client: FormsClient,
        channel_factory: Callable[[str], PushChannel],
    ) -> None:
        self.form_id = form_id
        self._client = client
        self._channel_factory = channel_factory
        self.store = AggregationStore()
        self.form: Form | None = None
        self.loop: EventIngestionLoop | None = None
        self._summary_task: asyncio.Task[None] | None = None
        self._ingest_task: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self.loop is not None and self.loop.connected

    async def start(self) -> Form:
        """Fetch the form, then start the summary fetch and live ingestion."""
        self.form = await self._client.get_form(self.form_id)
        self.loop = EventIngestionLoop(
            self.form_id,
            self.form.fields,
            self.store,
            self._channel_factory(self.form_id),
        )
        self._ingest_task = asyncio.create_task(self.loop.run())
        self._summary_task = asyncio.create_task(self._load_summary())
        return self.form

    async def _load_summary(self) -> None:
        buckets = await self._client.get_summary(self.form_id)
        self.store.initialize(buckets)

    async def ready(self) -> None:
        """Wait for the summary to be loaded.  Re-raises a failed fetch."""
        if self._summary_task is None:
            raise RuntimeError("session not started")
        await self._summary_task

    def snapshot(self) -> Snapshot:
        return self.store.read()

    async def close(self) -> None:
        """Tear down the subscription and any in-flight summary fetch."""
        if self.loop is not None:
            await self.loop.stop()
        for task in (self._summary_task, self._ingest_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task


def rows(snapshot: Snapshot, fields: Sequence[FormField]) -> list[FieldRows]:
    """Order a snapshot for display.

    Fields follow form order; ids no longer in the form come last.  Choice
    buckets follow option order, ratings go low to high, everything else is
    most-frequent first.  Buckets not in the options (schema drift) trail.
    """
    out: list[FieldRows] = []
    known = set()
    for field in fields:
        known.add(field.id)
        table = snapshot.get(field.id, {})
        out.append(FieldRows(field.id, field.label or field.id, _order(field, table)))
    for field_id in sorted(set(snapshot) - known):
        table = snapshot[field_id]
        out.append(FieldRows(field_id, field_id, _by_count(table)))
    return out


def _order(field: FormField, table: dict[str, int]) -> list[tuple[str, int]]:
    if isinstance(field, (McqField, CheckboxField)):
        listed = [(opt, table.get(opt, 0)) for opt in field.options]
        extra = {k: v for k, v in table.items() if k not in field.options}
        return listed + _by_count(extra)
    if isinstance(field, RatingField):
        listed = [(str(n), table.get(str(n), 0)) for n in range(field.min, field.max + 1)]
        extra = {k: v for k, v in table.items() if k not in {key for key, _ in listed}}
        return listed + _by_count(extra)
    return _by_count(table)


def _by_count(table: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(table.items(), key=lambda kv: (-kv[1], kv[0]))
