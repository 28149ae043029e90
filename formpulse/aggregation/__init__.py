"""Response aggregation — bucket-key normalization and the live snapshot store."""

from formpulse.aggregation.normalize import bucket_key, normalize, normalize_unknown
from formpulse.aggregation.store import AggregationStore, Snapshot
from formpulse.aggregation.summary import summarize_responses

__all__ = [
    "AggregationStore",
    "Snapshot",
    "bucket_key",
    "normalize",
    "normalize_unknown",
    "summarize_responses",
]
