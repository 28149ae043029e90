"""Batch aggregation of stored responses into a snapshot."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from formpulse.aggregation.normalize import normalize, normalize_unknown
from formpulse.aggregation.store import AggregationStore, Snapshot
from formpulse.schema import Answer, FormField


def summarize_responses(
    fields: Sequence[FormField],
    responses: Iterable[Sequence[Answer]],
) -> Snapshot:
    """Count every answer of every response, exactly as the live path would.

    Uses the same normalizer as event ingestion so a snapshot fetched at page
    load and the increments applied afterwards agree on bucket keys.
    """
    by_id = {f.id: f for f in fields}
    store = AggregationStore()
    store.initialize({})
    for answers in responses:
        for answer in answers:
            field = by_id.get(answer.field_id)
            if field is None:
                keys = normalize_unknown(answer.value)
            else:
                keys = normalize(field, answer.value)
            store.ingest(answer.field_id, keys)
    return store.read()
