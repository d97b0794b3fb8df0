"""
Tests for PersistenceAdapter -- live keys and the snapshot slot.
"""

import json

import pytest

from parts_kernel.domain.transactions import (
    CandidatePart,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from parts_kernel.exceptions import SerializationError, SnapshotNotFoundError
from parts_kernel.storage.key_value import InMemoryKeyValueStore, SqlKeyValueStore
from parts_kernel.storage.persistence import PersistenceAdapter, StorageKeys
from tests.conftest import FIXED_NOW, make_part


def make_tx(tx_id, status=TransactionStatus.COMPLETED, **kwargs):
    defaults = dict(
        id=tx_id,
        part_id="P001",
        user_id="u1",
        user_name="Admin",
        type=TransactionType.IN,
        quantity=2,
        timestamp=FIXED_NOW,
        status=status,
    )
    defaults.update(kwargs)
    return Transaction(**defaults)


class TestLiveKeys:
    def test_nothing_saved(self, persistence):
        assert persistence.load_parts() is None
        assert persistence.load_transactions() is None

    def test_save_and_load(self, persistence):
        parts = (make_part("P001"), make_part("P002", area="A2"))
        transactions = (make_tx("TX-000002"), make_tx("TX-000001"))

        persistence.save_live(parts, transactions)

        assert persistence.load_parts() == parts
        assert persistence.load_transactions() == transactions

    def test_stored_as_json_arrays_under_keys(self, persistence, kv_store):
        persistence.save_live([make_part()], [make_tx("TX-000001")])

        parts = json.loads(kv_store.get("store_parts"))
        txs = json.loads(kv_store.get("store_transactions"))
        assert parts[0]["minLevel"] == 2
        assert txs[0]["partId"] == "P001"

    def test_custom_keys(self, kv_store, clock):
        adapter = PersistenceAdapter(kv_store, StorageKeys(parts="p", transactions="t", snapshot="s"), clock)
        adapter.save_live([make_part()], [])
        assert kv_store.keys() == ["p", "t"]

    def test_pending_create_survives(self, persistence):
        tx = make_tx(
            "TX-000001",
            status=TransactionStatus.PENDING,
            type=TransactionType.CREATE,
            payload=CandidatePart(make_part("P007")),
        )
        persistence.save_live([], [tx])
        assert persistence.load_transactions()[0].candidate_part == make_part("P007")

    def test_live_keys_written_in_one_call(self, clock):
        class RecordingStore(InMemoryKeyValueStore):
            def __init__(self):
                super().__init__()
                self.batches = []

            def set_many(self, items):
                self.batches.append(sorted(items))
                super().set_many(items)

        kv = RecordingStore()
        PersistenceAdapter(kv, clock=clock).save_live([make_part()], [make_tx("TX-000001")])

        assert kv.batches == [["store_parts", "store_transactions"]]

    @pytest.mark.parametrize(
        "raw",
        ["{not json", '{"id": "P001"}', '[{"id": "P001"}]', '[{"id":"P001","name":"x","model":"m","spec":"s","area":"A1","quantity":-1,"minLevel":0,"lastUpdated":"2024-01-01T00:00:00"}]'],
    )
    def test_unreadable_parts(self, persistence, kv_store, raw):
        kv_store.set("store_parts", raw)
        with pytest.raises(SerializationError) as exc_info:
            persistence.load_parts()
        assert exc_info.value.key == "store_parts"


class TestSnapshotSlot:
    def test_missing_snapshot(self, persistence):
        assert persistence.has_snapshot() is False
        with pytest.raises(SnapshotNotFoundError):
            persistence.load_snapshot()

    def test_save_and_load(self, persistence, clock, captured_logs):
        saved = persistence.save_snapshot([make_part()], [make_tx("TX-000001")])

        loaded = persistence.load_snapshot()

        assert loaded == saved
        assert loaded.saved_at == clock.now()
        assert any(r["message"] == "snapshot_saved" for r in captured_logs())

    def test_snapshot_object_shape(self, persistence, kv_store):
        persistence.save_snapshot([make_part()], [])

        data = json.loads(kv_store.get("store_snapshot"))
        assert set(data) == {"savedAt", "parts", "transactions"}

    def test_snapshot_does_not_touch_live_keys(self, persistence, kv_store):
        persistence.save_snapshot([make_part()], [])
        assert kv_store.keys() == ["store_snapshot"]

    def test_second_save_overwrites(self, persistence, clock):
        persistence.save_snapshot([make_part(quantity=1)], [])
        clock.advance(5)
        persistence.save_snapshot([make_part(quantity=9)], [])

        snapshot = persistence.load_snapshot()
        assert snapshot.parts[0].quantity == 9
        assert snapshot.saved_at == clock.now()

    @pytest.mark.parametrize("raw", ["[]", '{"parts": []}', "{oops"])
    def test_corrupt_snapshot(self, persistence, kv_store, raw):
        kv_store.set("store_snapshot", raw)
        with pytest.raises(SerializationError):
            persistence.load_snapshot()


class TestSqlBacked:
    def test_round_trip_through_sqlite(self, sql_session_factory, clock):
        adapter = PersistenceAdapter(SqlKeyValueStore(sql_session_factory, clock), clock=clock)
        parts = (make_part("P001"),)
        transactions = (make_tx("TX-000001"),)

        adapter.save_live(parts, transactions)
        adapter.save_snapshot(parts, transactions)

        assert adapter.load_parts() == parts
        assert adapter.load_snapshot().transactions == transactions
