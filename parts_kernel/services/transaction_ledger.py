"""
parts_kernel.services.transaction_ledger -- append-only transaction log.

Responsibility:
    Sole writer of Transaction records.  Allocates ids, appends entries,
    records decisions on pending entries, and answers filtered reads.

Architecture position:
    Kernel > Services.  May import from domain/ and exceptions only.
    Not thread-safe on its own: callers mutate it inside
    ``InventoryStore.mutation()``.

Invariants enforced:
    - Ids are unique and never reused within a process: the sequence only
      moves forward, including across ``replace_all`` and ``clear``.
    - Submitted actions get ``TX-<n>``, synthetic audit entries ``LOG-<n>``,
      both drawn from one counter so ids order by creation.
    - Entries are stored in creation order; every listing is newest first.
    - Once non-PENDING an entry is never rewritten (transition table in
      ``domain.transactions``).

Failure modes:
    - TransactionNotFoundError on decide/require against an unknown id.
    - InvalidTransitionError when the stored status forbids the change.
    - ImmutabilityViolationError on appending a duplicate id.
"""

from __future__ import annotations

from typing import Iterable

from parts_kernel.domain.transactions import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from parts_kernel.exceptions import (
    ImmutabilityViolationError,
    TransactionNotFoundError,
)
from parts_kernel.logging_config import get_logger

logger = get_logger("services.transaction_ledger")

SUBMITTED_PREFIX = "TX"
AUDIT_PREFIX = "LOG"


def sequence_of(transaction_id: str) -> int | None:
    """Numeric suffix of a ledger id, or None for foreign formats."""
    _, _, tail = transaction_id.rpartition("-")
    return int(tail) if tail.isdigit() else None


class TransactionLedger:
    """Ordered, append-only store of transactions."""

    def __init__(self, transactions: Iterable[Transaction] = ()) -> None:
        self._entries: list[Transaction] = []
        self._index: dict[str, int] = {}
        self._sequence = 0
        self.replace_all(transactions)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._index

    @property
    def last_sequence(self) -> int:
        return self._sequence

    def allocate_id(self, transaction_type: TransactionType) -> str:
        """Reserve the next id for an entry of ``transaction_type``."""
        self._sequence += 1
        prefix = AUDIT_PREFIX if transaction_type == TransactionType.APPROVAL else SUBMITTED_PREFIX
        return f"{prefix}-{self._sequence:06d}"

    def append(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._index:
            raise ImmutabilityViolationError(
                entity_type="Transaction",
                entity_id=transaction.id,
                reason="transaction ids are never reused",
            )
        self._index[transaction.id] = len(self._entries)
        self._entries.append(transaction)
        seq = sequence_of(transaction.id)
        if seq is not None and seq > self._sequence:
            self._sequence = seq
        return transaction

    def get(self, transaction_id: str) -> Transaction | None:
        pos = self._index.get(transaction_id)
        return None if pos is None else self._entries[pos]

    def require(self, transaction_id: str) -> Transaction:
        tx = self.get(transaction_id)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)
        return tx

    def mark_decided(
        self,
        transaction_id: str,
        new_status: TransactionStatus,
        approver_name: str | None,
    ) -> Transaction:
        """Move a pending entry to APPROVED / REJECTED in place."""
        pos = self._index.get(transaction_id)
        if pos is None:
            raise TransactionNotFoundError(transaction_id)
        decided = self._entries[pos].with_decision(new_status, approver_name)
        self._entries[pos] = decided
        return decided

    # ------------------------------------------------------------------
    # Reads (newest first)
    # ------------------------------------------------------------------

    def list(self) -> tuple[Transaction, ...]:
        return tuple(reversed(self._entries))

    def by_status(self, status: TransactionStatus) -> tuple[Transaction, ...]:
        return tuple(tx for tx in reversed(self._entries) if tx.status == status)

    def pending(self) -> tuple[Transaction, ...]:
        return self.by_status(TransactionStatus.PENDING)

    def for_part(self, part_id: str) -> tuple[Transaction, ...]:
        return tuple(tx for tx in reversed(self._entries) if tx.part_id == part_id)

    def related_to(self, transaction_id: str) -> tuple[Transaction, ...]:
        """Audit entries written for decisions on ``transaction_id``."""
        return tuple(
            tx for tx in reversed(self._entries)
            if tx.related_transaction_id == transaction_id
        )

    # ------------------------------------------------------------------
    # Wholesale replacement
    # ------------------------------------------------------------------

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        """Load a newest-first sequence of transactions, dropping current ones.

        The id sequence continues after the highest of the current and
        loaded sequence numbers.
        """
        loaded = list(transactions)
        loaded.reverse()
        self._entries = []
        self._index = {}
        for tx in loaded:
            self.append(tx)

    def clear(self) -> None:
        self._entries = []
        self._index = {}
        logger.info("ledger_cleared", extra={"last_sequence": self._sequence})
