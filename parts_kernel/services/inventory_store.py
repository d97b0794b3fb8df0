"""
parts_kernel.services.inventory_store -- explicit store object.

Responsibility:
    Owns the Part Registry and the Transaction Ledger for one running
    session and provides the single mutation boundary both are changed
    under.  Passed by reference to the Approval Engine, selectors and the
    service facade; there is no module-level singleton.

Architecture position:
    Kernel > Services.  May import from domain/ and services/.

Invariants enforced:
    - All-or-nothing: ``mutation()`` checkpoints both collections on entry
      and restores them if the block raises, so readers never see a
      ledger entry without its registry effect or vice versa.
    - Serialized writers: one re-entrant lock guards every mutation and
      every read, so a decide cannot interleave with a submit.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator

from parts_kernel.domain.clock import Clock, SystemClock
from parts_kernel.domain.parts import Part
from parts_kernel.domain.transactions import Transaction
from parts_kernel.logging_config import get_logger
from parts_kernel.services.part_registry import PartRegistry
from parts_kernel.services.transaction_ledger import TransactionLedger

logger = get_logger("services.inventory_store")


@dataclass(frozen=True)
class StoreView:
    """Consistent read of both collections taken under the store lock."""

    parts: tuple[Part, ...]
    transactions: tuple[Transaction, ...]


class InventoryStore:
    """Registry + ledger pair with a single mutation boundary."""

    def __init__(
        self,
        parts: Iterable[Part] = (),
        transactions: Iterable[Transaction] = (),
        clock: Clock | None = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.registry = PartRegistry(parts)
        self.ledger = TransactionLedger(transactions)
        self._lock = threading.RLock()

    @contextmanager
    def mutation(self, operation: str) -> Iterator[InventoryStore]:
        """Run a block of registry/ledger writes atomically.

        Usage::

            with store.mutation("submit") as s:
                s.ledger.append(tx)
                s.registry.apply_quantity_effect(...)
        """
        with self._lock:
            parts_before = self.registry.list()
            entries_before = self.ledger.list()
            try:
                yield self
            except Exception:
                self.registry.replace_all(parts_before)
                self.ledger.replace_all(entries_before)
                logger.warning(
                    "mutation_rolled_back",
                    extra={"operation": operation},
                    exc_info=True,
                )
                raise

    def view(self) -> StoreView:
        with self._lock:
            return StoreView(
                parts=self.registry.list(),
                transactions=self.ledger.list(),
            )

    def parts(self) -> tuple[Part, ...]:
        with self._lock:
            return self.registry.list()

    def transactions(self) -> tuple[Transaction, ...]:
        with self._lock:
            return self.ledger.list()

    def part(self, part_id: str) -> Part | None:
        with self._lock:
            return self.registry.get(part_id)

    def transaction(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            return self.ledger.get(transaction_id)

    def replace(
        self,
        parts: Iterable[Part],
        transactions: Iterable[Transaction],
    ) -> None:
        """Swap both collections wholesale (restore / reset / load)."""
        parts = tuple(parts)
        transactions = tuple(transactions)
        with self.mutation("replace"):
            self.registry.replace_all(parts)
            self.ledger.replace_all(transactions)
