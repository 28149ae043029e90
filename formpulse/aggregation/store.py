"""In-memory aggregation snapshot: field id -> bucket key -> count.

The store is the sole owner of the snapshot for one dashboard session.  It is
seeded once from the analytics summary fetched at page load and then only ever
grows as response events are ingested.

The summary fetch and the push channel start together, so events can arrive
before the summary does.  Those early increments are held back and replayed
on top of the summary when ``initialize`` runs, rather than being applied to
an empty table that the summary would then overwrite.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

#: field id -> {bucket key: count}
Snapshot = dict[str, dict[str, int]]


class AggregationStore:
    """Owns the live aggregation snapshot for one session."""

    def __init__(self) -> None:
        self._tables: dict[str, Counter[str]] = {}
        self._initialized = False
        self._pending: list[tuple[str, frozenset[str]]] = []

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def pending(self) -> int:
        """Number of ingest calls waiting for ``initialize``."""
        return len(self._pending)

    def initialize(self, snapshot: Mapping[str, Mapping[str, int]]) -> None:
        """Seed the store from a fetched summary.

        Only the first call has any effect.  Ingest calls received before it
        are replayed, in arrival order, after the summary is loaded.
        """
        if self._initialized:
            logger.warning("Aggregation store already initialized; ignoring new snapshot")
            return
        self._tables = _coerce_snapshot(snapshot)
        self._initialized = True
        pending, self._pending = self._pending, []
        for field_id, keys in pending:
            self._apply(field_id, keys)
        logger.debug(
            "Store initialized with %d field(s), replayed %d early event(s)",
            len(self._tables),
            len(pending),
        )

    def ingest(self, field_id: str, keys: Iterable[str]) -> None:
        """Increment each bucket key of *field_id* by one.

        Not idempotent: ingesting the same answer twice counts it twice.
        """
        keyset = frozenset(keys)
        if not self._initialized:
            self._pending.append((field_id, keyset))
            return
        self._apply(field_id, keyset)

    def read(self) -> Snapshot:
        """Return a deep copy of the current snapshot.

        Before initialization this is the buffered increments on their own.
        """
        if self._initialized:
            return {fid: dict(table) for fid, table in self._tables.items()}
        preview: dict[str, Counter[str]] = {}
        for field_id, keys in self._pending:
            table = preview.setdefault(field_id, Counter())
            for key in keys:
                table[key] += 1
        return {fid: dict(table) for fid, table in preview.items()}

    def table(self, field_id: str) -> dict[str, int]:
        """Copy of one field's frequency table (empty if never seen)."""
        return self.read().get(field_id, {})

    def total(self, field_id: str) -> int:
        """Sum of all bucket counts for *field_id*."""
        return sum(self.table(field_id).values())

    def _apply(self, field_id: str, keys: frozenset[str]) -> None:
        if not keys:
            return
        table = self._tables.setdefault(field_id, Counter())
        for key in keys:
            table[key] += 1


def _coerce_snapshot(snapshot: Mapping[str, Mapping[str, int]]) -> dict[str, Counter[str]]:
    """Copy a fetched summary, dropping counts that are not non-negative integers."""
    tables: dict[str, Counter[str]] = {}
    for field_id, buckets in (snapshot or {}).items():
        if not isinstance(buckets, Mapping):
            logger.debug("Skipping malformed summary entry for field %r", field_id)
            continue
        table: Counter[str] = Counter()
        for key, count in buckets.items():
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                logger.debug("Skipping bad count %r for %r/%r", count, field_id, key)
                continue
            table[str(key)] = count
        tables[str(field_id)] = table
    return tables
