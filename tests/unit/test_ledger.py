"""Unit tests for the session ledger."""

from dataclasses import replace

import pytest

from promptcraft.core.ledger import SessionLedger
from promptcraft.core.models import PromptRecord, TokenUsage


def _record(record_id: str, content: str = "c") -> PromptRecord:
    return PromptRecord(id=record_id, title=f"title {record_id}", content=content, style="s")


@pytest.mark.unit
class TestUsage:
    def test_add_usage_accumulates(self):
        ledger = SessionLedger()
        assert ledger.add_usage(TokenUsage(total_token_count=100)) == 100
        assert ledger.add_usage(TokenUsage(total_token_count=50)) == 50
        assert ledger.cumulative_tokens == 150

    def test_missing_or_zero_usage_adds_nothing(self):
        ledger = SessionLedger()
        calls = []
        ledger.subscribe(lambda: calls.append(1))
        assert ledger.add_usage(None) == 0
        assert ledger.add_usage(TokenUsage()) == 0
        assert ledger.add_usage(TokenUsage(total_token_count=-5)) == 0
        assert ledger.cumulative_tokens == 0
        assert calls == []

    def test_stats(self):
        ledger = SessionLedger(daily_limit=1000)
        ledger.add_usage(TokenUsage(total_token_count=250))
        stats = ledger.stats()
        assert stats.cumulative_tokens == 250
        assert stats.remaining_budget == 750
        assert stats.percent_used == 25.0

    def test_stats_over_budget(self):
        ledger = SessionLedger(daily_limit=100)
        ledger.add_usage(TokenUsage(total_token_count=150))
        stats = ledger.stats()
        assert stats.remaining_budget == 0
        assert stats.percent_used == 150.0


@pytest.mark.unit
class TestRecords:
    def test_prepend_puts_batch_first_in_order(self):
        ledger = SessionLedger()
        ledger.prepend([_record("old")])
        ledger.prepend([_record("a"), _record("b")])
        assert [r.id for r in ledger.records] == ["a", "b", "old"]

    def test_prepend_truncates_oldest(self):
        ledger = SessionLedger(max_records=3)
        ledger.prepend([_record("1"), _record("2")])
        ledger.prepend([_record("3"), _record("4")])
        assert [r.id for r in ledger.records] == ["3", "4", "1"]

    def test_empty_prepend_does_not_notify(self):
        ledger = SessionLedger()
        calls = []
        ledger.subscribe(lambda: calls.append(1))
        ledger.prepend([])
        assert calls == []

    def test_update_replaces_in_place(self):
        ledger = SessionLedger()
        ledger.prepend([_record("a"), _record("b"), _record("c")])
        updated = ledger.update("b", lambda r: replace(r, content="new"))
        assert updated.content == "new"
        assert [r.id for r in ledger.records] == ["a", "b", "c"]
        assert ledger.get("b").content == "new"
        assert ledger.get("a").content == "c"

    def test_update_sees_latest_state(self):
        ledger = SessionLedger()
        ledger.prepend([_record("a")])
        ledger.update("a", lambda r: replace(r, content="first"))
        ledger.update("a", lambda r: replace(r, preview_url="data:x"))
        record = ledger.get("a")
        assert record.content == "first"
        assert record.preview_url == "data:x"

    def test_update_unknown_id_is_noop(self):
        ledger = SessionLedger()
        ledger.prepend([_record("a")])
        calls = []
        ledger.subscribe(lambda: calls.append(1))
        assert ledger.update("zzz", lambda r: replace(r, content="x")) is None
        assert calls == []

    def test_update_may_not_change_id(self):
        ledger = SessionLedger()
        ledger.prepend([_record("a")])
        with pytest.raises(ValueError):
            ledger.update("a", lambda r: replace(r, id="b"))
        assert ledger.get("a") is not None

    def test_restore_does_not_notify_and_caps(self):
        ledger = SessionLedger(max_records=2)
        calls = []
        ledger.subscribe(lambda: calls.append(1))
        ledger.restore([_record("1"), _record("2"), _record("3")], 42)
        assert [r.id for r in ledger.records] == ["1", "2"]
        assert ledger.cumulative_tokens == 42
        assert calls == []

    def test_unsubscribe(self):
        ledger = SessionLedger()
        calls = []
        unsubscribe = ledger.subscribe(lambda: calls.append(1))
        ledger.prepend([_record("a")])
        unsubscribe()
        unsubscribe()
        ledger.prepend([_record("b")])
        assert calls == [1]
