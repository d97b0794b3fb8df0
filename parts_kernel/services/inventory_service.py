"""
parts_kernel.services.inventory_service -- inbound facade.

Responsibility:
    The surface collaborators call: ``submit``, ``decide``, read
    accessors, ``reset``, and manual snapshot save/restore.  Delegates
    the decision logic to the Approval Engine and writes the live keys
    after every successful mutation.

Architecture position:
    Kernel > Services.  May import from domain/, services/ and storage/.
    Configuration reaches it through ``parts_config.bridges``; this module
    never imports ``parts_config``.

Invariants enforced:
    - Persistence is best-effort: a failed write is logged and reported in
      the returned ``MutationResult``, never retried, and never rolls back
      in-memory state.
    - Reset and restore replace both collections inside one store
      mutation; neither merges with the current state.
    - Live writes are serialized and each captures the view while holding
      the write lock, so the last write to land is always the newest state.

Failure modes:
    - Everything the Approval Engine raises, unchanged.
    - SnapshotNotFoundError / SerializationError from ``restore_snapshot``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable

from parts_kernel.domain.actions import Decision, SubmitAction
from parts_kernel.domain.actors import Actor
from parts_kernel.domain.parts import Part
from parts_kernel.domain.transactions import Transaction, TransactionStatus
from parts_kernel.exceptions import PersistenceError
from parts_kernel.logging_config import get_logger
from parts_kernel.services.approval_engine import ApprovalEngine
from parts_kernel.services.inventory_store import InventoryStore
from parts_kernel.storage.persistence import PersistenceAdapter, Snapshot

logger = get_logger("services.inventory_service")


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one facade mutation.

    ``transaction_id`` is the submitted transaction, or the APPROVAL audit
    entry for ``decide``; None when the call changed nothing or created
    no transaction (reset, restore).
    """

    transaction_id: str | None
    changed: bool = True
    persisted: bool = False
    persistence_error: str | None = None


class InventoryService:
    """Facade over the store, the Approval Engine and persistence."""

    def __init__(
        self,
        store: InventoryStore,
        persistence: PersistenceAdapter,
        engine: ApprovalEngine | None = None,
        seed_parts: Iterable[Part] = (),
    ) -> None:
        self._store = store
        self._persistence = persistence
        self._engine = engine or ApprovalEngine(store)
        self._seed_parts = tuple(seed_parts)
        self._persist_lock = threading.Lock()

    @property
    def store(self) -> InventoryStore:
        return self._store

    @property
    def engine(self) -> ApprovalEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Populate the store from the live keys.

        A missing or unreadable parts key falls back to the seed parts; a
        missing or unreadable transactions key falls back to an empty
        ledger.
        """
        parts = self._load_or_none(self._persistence.load_parts, self._persistence.keys.parts)
        transactions = self._load_or_none(
            self._persistence.load_transactions, self._persistence.keys.transactions,
        )
        seeded = parts is None
        if seeded:
            parts = self._stamped_seed(self._store.clock.now())
        self._store.replace(parts, transactions or ())
        logger.info(
            "inventory_loaded",
            extra={
                "part_count": len(parts),
                "transaction_count": len(transactions or ()),
                "seeded": seeded,
            },
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def submit(self, action: SubmitAction) -> MutationResult:
        transaction_id = self._engine.submit(action)
        return self._persist(transaction_id)

    def decide(
        self,
        transaction_id: str,
        decision: Decision | TransactionStatus | str,
        decider: Actor,
    ) -> MutationResult:
        audit = self._engine.decide(transaction_id, decision, decider)
        if audit is None:
            return MutationResult(transaction_id=None, changed=False)
        return self._persist(audit.id)

    def reset(self) -> MutationResult:
        """Replace the registry with the seed set and empty the ledger."""
        with self._store.mutation("reset") as store:
            store.registry.replace_all(self._stamped_seed(store.clock.now()))
            store.ledger.clear()
        logger.warning("inventory_reset", extra={"part_count": len(self._seed_parts)})
        return self._persist(None)

    # ------------------------------------------------------------------
    # Snapshot slot
    # ------------------------------------------------------------------

    def save_snapshot(self) -> Snapshot:
        view = self._store.view()
        return self._persistence.save_snapshot(view.parts, view.transactions)

    def has_snapshot(self) -> bool:
        return self._persistence.has_snapshot()

    def restore_snapshot(self) -> datetime:
        """Replace live state with the saved snapshot; returns its ``savedAt``."""
        snapshot = self._persistence.load_snapshot()
        self._store.replace(snapshot.parts, snapshot.transactions)
        result = self._persist(None)
        logger.info(
            "snapshot_restored",
            extra={
                "saved_at": snapshot.saved_at,
                "part_count": len(snapshot.parts),
                "transaction_count": len(snapshot.transactions),
                "persisted": result.persisted,
            },
        )
        return snapshot.saved_at

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_parts(self) -> tuple[Part, ...]:
        return self._store.parts()

    def get_transactions(self) -> tuple[Transaction, ...]:
        """All transactions, newest first."""
        return self._store.transactions()

    def get_part(self, part_id: str) -> Part | None:
        return self._store.part(part_id)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        return self._store.transaction(transaction_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stamped_seed(self, now: datetime) -> tuple[Part, ...]:
        return tuple(replace(p, last_updated=now) for p in self._seed_parts)

    def _load_or_none(self, load, key: str):
        try:
            return load()
        except PersistenceError as exc:
            logger.error(
                "live_state_unreadable",
                extra={"key": key, "error_code": exc.code},
                exc_info=True,
            )
            return None

    def _persist(self, transaction_id: str | None) -> MutationResult:
        try:
            with self._persist_lock:
                view = self._store.view()
                self._persistence.save_live(view.parts, view.transactions)
        except PersistenceError as exc:
            logger.error(
                "persistence_write_failed",
                extra={"transaction_id": transaction_id, "error_code": exc.code},
                exc_info=True,
            )
            return MutationResult(
                transaction_id=transaction_id,
                persisted=False,
                persistence_error=str(exc),
            )
        return MutationResult(transaction_id=transaction_id, persisted=True)
