"""
Module: parts_kernel.selectors.inventory_selector
Responsibility: Read-only queries over the store: low-stock parts, the
    pending queue, stock totals per storage area, text search and
    per-part history.
Architecture position: Kernel > Selectors.  May import from domain/ and
    services/inventory_store.py.  Never mutates the store.

Invariants enforced:
    - Every query reads one ``StoreView`` taken under the store lock, so a
      result never mixes state from before and after a decision.
    - Transaction results are newest first, like the ledger.

Failure modes:
    - Returns empty tuples / zero totals for an empty store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from parts_kernel.domain.parts import Part, StorageArea
from parts_kernel.domain.transactions import Transaction
from parts_kernel.services.inventory_store import InventoryStore


@dataclass(frozen=True)
class PendingItem:
    """A pending transaction and the part it targets.

    ``part`` is the registry record, or the embedded candidate for a
    pending CREATE; None if the target has since been deleted.
    """

    transaction: Transaction
    part: Part | None


@dataclass(frozen=True)
class AreaStock:
    area_id: str
    area_name: str
    part_count: int
    units: int


class InventorySelector:
    """Read-only queries over an ``InventoryStore``."""

    def __init__(self, store: InventoryStore):
        self.store = store

    def low_stock_parts(self) -> tuple[Part, ...]:
        return tuple(p for p in self.store.parts() if p.is_low_stock)

    def pending_transactions(self) -> tuple[Transaction, ...]:
        return tuple(t for t in self.store.transactions() if t.is_pending)

    def pending_count(self) -> int:
        return len(self.pending_transactions())

    def total_units(self) -> int:
        return sum(p.quantity for p in self.store.parts())

    def stock_by_area(self, areas: Iterable[StorageArea]) -> tuple[AreaStock, ...]:
        """Units per area, in the order ``areas`` is given.

        Areas with no parts report zero.  Parts in an area that is not
        listed are left out.
        """
        parts = self.store.parts()
        rows = []
        for area in areas:
            in_area = [p for p in parts if p.area == area.id]
            rows.append(
                AreaStock(
                    area_id=area.id,
                    area_name=area.name,
                    part_count=len(in_area),
                    units=sum(p.quantity for p in in_area),
                )
            )
        return tuple(rows)

    def search_parts(self, text: str = "", area: str | None = None) -> tuple[Part, ...]:
        """Case-insensitive match on name, model, id or spec."""
        needle = text.strip().lower()
        matches = []
        for part in self.store.parts():
            if area is not None and part.area != area:
                continue
            if needle and not any(
                needle in field.lower()
                for field in (part.name, part.model, part.id, part.spec)
            ):
                continue
            matches.append(part)
        return tuple(matches)

    def pending_queue(self) -> tuple[PendingItem, ...]:
        view = self.store.view()
        by_id = {p.id: p for p in view.parts}
        return tuple(
            PendingItem(
                transaction=tx,
                part=tx.candidate_part or by_id.get(tx.part_id),
            )
            for tx in view.transactions
            if tx.is_pending
        )

    def history_for_part(self, part_id: str) -> tuple[Transaction, ...]:
        return tuple(t for t in self.store.transactions() if t.part_id == part_id)
