"""
parts_kernel.storage.persistence -- live state and snapshot slot.

Responsibility:
    Serializes the whole parts and transactions collections under two
    stable live keys, and a ``{savedAt, parts, transactions}`` snapshot
    object under a third key that is independent of the live ones.

Architecture position:
    Kernel > Storage.  May import from domain/, storage/ and exceptions.
    Knows nothing about when it is called; the service facade decides
    that and treats every write as best-effort.

Failure modes:
    - StorageUnavailableError from the backend, unchanged.
    - SerializationError when a stored value cannot be decoded, or state
      cannot be encoded.
    - SnapshotNotFoundError when loading a snapshot that was never saved.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, TypeVar

from parts_kernel.domain.clock import Clock, SystemClock
from parts_kernel.domain.parts import Part
from parts_kernel.domain.transactions import Transaction
from parts_kernel.exceptions import (
    ActionValidationError,
    SerializationError,
    SnapshotNotFoundError,
)
from parts_kernel.logging_config import get_logger
from parts_kernel.storage import codec
from parts_kernel.storage.key_value import KeyValueStore

logger = get_logger("storage.persistence")

T = TypeVar("T")


@dataclass(frozen=True)
class StorageKeys:
    parts: str = "store_parts"
    transactions: str = "store_transactions"
    snapshot: str = "store_snapshot"


@dataclass(frozen=True)
class Snapshot:
    """A manually saved copy of both collections."""

    saved_at: datetime
    parts: tuple[Part, ...]
    transactions: tuple[Transaction, ...]


class PersistenceAdapter:
    """Reads and writes kernel state through a ``KeyValueStore``."""

    def __init__(
        self,
        store: KeyValueStore,
        keys: StorageKeys | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self.keys = keys or StorageKeys()
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Live keys
    # ------------------------------------------------------------------

    def save_live(
        self,
        parts: Iterable[Part],
        transactions: Iterable[Transaction],
    ) -> None:
        """Write both live keys together; a failed write leaves neither."""
        parts_text = self._encode(self.keys.parts, [codec.part_to_record(p) for p in parts])
        tx_text = self._encode(
            self.keys.transactions,
            [codec.transaction_to_record(t) for t in transactions],
        )
        self._store.set_many({
            self.keys.parts: parts_text,
            self.keys.transactions: tx_text,
        })

    def load_parts(self) -> tuple[Part, ...] | None:
        """Stored parts, or None if the key was never written."""
        raw = self._store.get(self.keys.parts)
        if raw is None:
            return None
        return self._decode_list(self.keys.parts, raw, codec.part_from_record)

    def load_transactions(self) -> tuple[Transaction, ...] | None:
        """Stored transactions (newest first), or None if never written."""
        raw = self._store.get(self.keys.transactions)
        if raw is None:
            return None
        return self._decode_list(self.keys.transactions, raw, codec.transaction_from_record)

    # ------------------------------------------------------------------
    # Snapshot slot
    # ------------------------------------------------------------------

    def save_snapshot(
        self,
        parts: Iterable[Part],
        transactions: Iterable[Transaction],
    ) -> Snapshot:
        snapshot = Snapshot(
            saved_at=self._clock.now(),
            parts=tuple(parts),
            transactions=tuple(transactions),
        )
        text = self._encode(self.keys.snapshot, {
            "savedAt": snapshot.saved_at.isoformat(),
            "parts": [codec.part_to_record(p) for p in snapshot.parts],
            "transactions": [codec.transaction_to_record(t) for t in snapshot.transactions],
        })
        self._store.set(self.keys.snapshot, text)
        logger.info(
            "snapshot_saved",
            extra={
                "saved_at": snapshot.saved_at,
                "part_count": len(snapshot.parts),
                "transaction_count": len(snapshot.transactions),
            },
        )
        return snapshot

    def has_snapshot(self) -> bool:
        return self._store.get(self.keys.snapshot) is not None

    def load_snapshot(self) -> Snapshot:
        raw = self._store.get(self.keys.snapshot)
        if raw is None:
            raise SnapshotNotFoundError(self.keys.snapshot)
        data = self._decode(self.keys.snapshot, raw)
        if not isinstance(data, dict):
            raise SerializationError(self.keys.snapshot, "snapshot is not an object")
        try:
            return Snapshot(
                saved_at=datetime.fromisoformat(data["savedAt"]),
                parts=tuple(codec.part_from_record(r) for r in data.get("parts") or []),
                transactions=tuple(
                    codec.transaction_from_record(r)
                    for r in data.get("transactions") or []
                ),
            )
        except (KeyError, ValueError, TypeError, ActionValidationError) as exc:
            raise SerializationError(self.keys.snapshot, repr(exc)) from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _encode(self, key: str, data: Any) -> str:
        try:
            return codec.dumps(data)
        except (TypeError, ValueError) as exc:
            raise SerializationError(key, repr(exc)) from exc

    def _decode(self, key: str, raw: str) -> Any:
        try:
            return codec.loads(raw)
        except ValueError as exc:
            raise SerializationError(key, repr(exc)) from exc

    def _decode_list(
        self,
        key: str,
        raw: str,
        parse: Callable[[dict[str, Any]], T],
    ) -> tuple[T, ...]:
        data = self._decode(key, raw)
        if not isinstance(data, list):
            raise SerializationError(key, "expected a JSON array")
        try:
            return tuple(parse(record) for record in data)
        except (KeyError, ValueError, TypeError, ActionValidationError) as exc:
            raise SerializationError(key, repr(exc)) from exc
