"""
Concurrency tests for the store mutation boundary.

Many threads submit and decide against one store at once.  Every
decision's effect must land exactly once, ids must stay unique, and
readers must never see a decided transaction without its audit entry.
Live writes from the facade must leave the newest state in storage.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

from parts_kernel.domain.actions import SubmitAction
from parts_kernel.domain.transactions import TransactionStatus, TransactionType
from parts_kernel.exceptions import TransactionNotPendingError
from parts_kernel.services.inventory_service import InventoryService
from parts_kernel.storage.key_value import InMemoryKeyValueStore
from parts_kernel.storage.persistence import PersistenceAdapter

THREADS = 8


def in_action(actor, quantity=1):
    return SubmitAction(part_id="P001", actor=actor, type=TransactionType.IN, quantity=quantity)


class TestConcurrentSubmits:
    def test_no_lost_updates(self, engine, store, admin):
        barrier = Barrier(THREADS)

        def worker(_):
            barrier.wait()
            return [engine.submit(in_action(admin)) for _ in range(25)]

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            ids = [tx_id for batch in pool.map(worker, range(THREADS)) for tx_id in batch]

        assert store.part("P001").quantity == 5 + THREADS * 25
        assert len(set(ids)) == len(ids) == THREADS * 25


class TestConcurrentDecisions:
    def test_same_approval_applied_once(self, engine, store, operator, approver):
        tx_id = engine.submit(in_action(operator, quantity=4))
        barrier = Barrier(THREADS)

        def worker(_):
            barrier.wait()
            return engine.decide(tx_id, "APPROVED", approver)

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = list(pool.map(worker, range(THREADS)))

        assert sum(1 for r in results if r is not None) == 1
        assert store.part("P001").quantity == 9
        assert len(store.ledger.related_to(tx_id)) == 1

    def test_conflicting_decisions_one_wins(self, engine, store, operator, approver):
        tx_id = engine.submit(in_action(operator, quantity=4))
        barrier = Barrier(THREADS)

        def worker(i):
            barrier.wait()
            decision = "APPROVED" if i % 2 else "REJECTED"
            try:
                return engine.decide(tx_id, decision, approver)
            except TransactionNotPendingError:
                return "not_pending"

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = list(pool.map(worker, range(THREADS)))

        winners = [r for r in results if r not in (None, "not_pending")]
        assert len(winners) == 1
        final = store.transaction(tx_id).status
        expected = 9 if final == TransactionStatus.APPROVED else 5
        assert store.part("P001").quantity == expected

    def test_readers_see_whole_decisions(self, engine, store, operator, approver):
        pending = [engine.submit(in_action(operator)) for _ in range(40)]
        barrier = Barrier(2)
        inconsistent = []

        def decide_all():
            barrier.wait()
            for tx_id in pending:
                engine.decide(tx_id, "APPROVED", approver)

        def read_repeatedly():
            barrier.wait()
            for _ in range(200):
                view = store.view()
                decided = {
                    t.id for t in view.transactions if t.status == TransactionStatus.APPROVED
                }
                audited = {
                    t.related_transaction_id
                    for t in view.transactions
                    if t.type == TransactionType.APPROVAL
                }
                quantity = next(p.quantity for p in view.parts if p.id == "P001")
                if decided != audited or quantity != 5 + len(decided):
                    inconsistent.append(view)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(decide_all), pool.submit(read_repeatedly)]
            for f in futures:
                f.result()

        assert inconsistent == []
        assert store.part("P001").quantity == 45


class SlowKeyValueStore(InMemoryKeyValueStore):
    """Widens the gap between capturing state and storing it."""

    def set_many(self, items):
        time.sleep(0.002)
        super().set_many(items)


class TestConcurrentPersistence:
    def test_last_live_write_is_newest_state(self, store, engine, seed_parts, clock, admin):
        persistence = PersistenceAdapter(SlowKeyValueStore(), clock=clock)
        service = InventoryService(store, persistence, engine=engine, seed_parts=seed_parts)
        barrier = Barrier(THREADS)

        def worker(_):
            barrier.wait()
            return [service.submit(in_action(admin)) for _ in range(5)]

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            results = [r for batch in pool.map(worker, range(THREADS)) for r in batch]

        assert all(r.persisted for r in results)
        assert persistence.load_parts() == store.parts()
        assert persistence.load_transactions() == store.transactions()
        assert persistence.load_parts()[0].quantity == 5 + THREADS * 5
