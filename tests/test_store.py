"""Tests for formpulse.aggregation.store — the live aggregation snapshot."""

from __future__ import annotations

import logging
import random
from collections import Counter

import pytest

from formpulse.aggregation.normalize import normalize
from formpulse.aggregation.store import AggregationStore
from formpulse.aggregation.summary import summarize_responses
from formpulse.schema import Answer, parse_field


@pytest.fixture
def store() -> AggregationStore:
    s = AggregationStore()
    s.initialize({})
    return s


class TestInitialize:

    def test_starts_empty(self) -> None:
        s = AggregationStore()
        assert s.read() == {}
        assert s.initialized is False

    def test_loads_snapshot(self) -> None:
        s = AggregationStore()
        s.initialize({"q1": {"Very": 3, "Somewhat": 1}})
        assert s.read() == {"q1": {"Very": 3, "Somewhat": 1}}
        assert s.initialized is True

    def test_second_call_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        s = AggregationStore()
        s.initialize({"q1": {"Very": 3}})
        s.ingest("q1", {"Very"})
        with caplog.at_level(logging.WARNING, logger="formpulse.aggregation.store"):
            s.initialize({"q1": {"Very": 100}})
        assert s.read() == {"q1": {"Very": 4}}
        assert "already initialized" in caplog.text

    def test_drops_bad_counts(self) -> None:
        s = AggregationStore()
        s.initialize({"q1": {"a": -2, "b": "7", "c": 2, "d": True}, "q2": "junk"})  # type: ignore[dict-item]
        assert s.read() == {"q1": {"c": 2}}

    def test_snapshot_not_aliased(self) -> None:
        source = {"q1": {"Very": 3}}
        s = AggregationStore()
        s.initialize(source)
        source["q1"]["Very"] = 99
        assert s.read() == {"q1": {"Very": 3}}


class TestIngest:

    def test_creates_table_and_key(self, store: AggregationStore) -> None:
        store.ingest("q1", {"Very"})
        assert store.read() == {"q1": {"Very": 1}}

    def test_increments_existing(self) -> None:
        s = AggregationStore()
        s.initialize({"q1": {"Very": 3}})
        s.ingest("q1", {"Very"})
        assert s.read() == {"q1": {"Very": 4}}

    def test_not_idempotent(self, store: AggregationStore) -> None:
        store.ingest("q1", {"Very"})
        store.ingest("q1", {"Very"})
        assert store.table("q1") == {"Very": 2}

    def test_fan_out(self, store: AggregationStore) -> None:
        store.ingest("q2", {"A", "B"})
        assert store.table("q2") == {"A": 1, "B": 1}

    def test_empty_set_changes_nothing(self, store: AggregationStore) -> None:
        store.ingest("q2", set())
        assert store.read() == {}

    def test_fields_never_merge(self, store: AggregationStore) -> None:
        mcq = parse_field({"id": "q1", "type": "mcq", "options": ["Very", "Somewhat"]})
        box = parse_field({"id": "q2", "type": "checkbox", "options": ["Very", "Somewhat"]})
        store.ingest("q1", normalize(mcq, "Very"))
        store.ingest("q2", normalize(box, {"Very", "Somewhat"}))
        assert store.read() == {"q1": {"Very": 1}, "q2": {"Very": 1, "Somewhat": 1}}

    def test_total(self, store: AggregationStore) -> None:
        store.ingest("q2", {"A", "B"})
        store.ingest("q2", {"A"})
        assert store.total("q2") == 3
        assert store.total("missing") == 0

    def test_counts_match_normalized_occurrences(self, store: AggregationStore) -> None:
        rng = random.Random(7)
        options = ["a", "b", "c", "d"]
        expected: Counter[str] = Counter()
        for _ in range(200):
            picked = {o for o in options if rng.random() < 0.5}
            expected.update(picked)
            store.ingest("q", picked)
        table = store.table("q")
        assert table == {k: v for k, v in expected.items()}
        assert all(isinstance(v, int) and v >= 0 for v in table.values())


class TestRead:

    def test_returns_copy(self, store: AggregationStore) -> None:
        store.ingest("q1", {"Very"})
        view = store.read()
        view["q1"]["Very"] = 1000
        view["q9"] = {"x": 1}
        assert store.read() == {"q1": {"Very": 1}}


class TestEarlyEvents:
    """Events that arrive before the summary are replayed on top of it."""

    def test_buffered_until_initialize(self) -> None:
        s = AggregationStore()
        s.ingest("q1", {"Very"})
        assert s.pending == 1
        s.initialize({"q1": {"Very": 3}})
        assert s.read() == {"q1": {"Very": 4}}
        assert s.pending == 0

    def test_replayed_in_order_on_new_field(self) -> None:
        s = AggregationStore()
        s.ingest("q2", {"A"})
        s.ingest("q2", {"A", "B"})
        s.initialize({"q1": {"Very": 3}})
        assert s.read() == {"q1": {"Very": 3}, "q2": {"A": 2, "B": 1}}

    def test_read_before_initialize_shows_buffered(self) -> None:
        s = AggregationStore()
        s.ingest("q1", {"Very"})
        assert s.read() == {"q1": {"Very": 1}}


class TestSummarizeResponses:

    def test_matches_live_path(self, survey_fields) -> None:  # type: ignore[no-untyped-def]
        responses = [
            [Answer(fieldId="q1", value="Very"), Answer(fieldId="q2", value=["Very", "Builder"])],
            [Answer(fieldId="q1", value="Very"), Answer(fieldId="score", value=4)],
            [Answer(fieldId="q2", value=[]), Answer(fieldId="gone", value="old")],
        ]
        assert summarize_responses(survey_fields, responses) == {
            "q1": {"Very": 2},
            "q2": {"Very": 1, "Builder": 1},
            "score": {"4": 1},
            "gone": {"old": 1},
        }

    def test_no_responses(self, survey_fields) -> None:  # type: ignore[no-untyped-def]
        assert summarize_responses(survey_fields, []) == {}
