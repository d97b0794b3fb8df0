"""
parts_kernel.services.part_registry -- current-state table of parts.

Responsibility:
    Sole writer of Part records.  Create, partial update, delete, lookup,
    and the zero-clamped signed quantity effect.

Architecture position:
    Kernel > Services.  May import from domain/ and exceptions only.
    Not thread-safe on its own: callers mutate it inside
    ``InventoryStore.mutation()``.

Invariants enforced:
    - Part ids are unique within the registry.
    - Every write replaces the whole record; quantity never goes below 0.
    - Every update and quantity effect refreshes ``last_updated``.
    - Insertion order is preserved for listing.

Failure modes:
    - DuplicatePartError on create with an existing id.
    - PartNotFoundError on update/delete/effect against an unknown id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from parts_kernel.domain.parts import Part, merge_updates, with_quantity_delta
from parts_kernel.exceptions import DuplicatePartError, PartNotFoundError
from parts_kernel.logging_config import get_logger

logger = get_logger("services.part_registry")


class PartRegistry:
    """In-memory table of parts keyed by id."""

    def __init__(self, parts: Iterable[Part] = ()) -> None:
        self._parts: dict[str, Part] = {}
        self.replace_all(parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __contains__(self, part_id: object) -> bool:
        return part_id in self._parts

    def get(self, part_id: str) -> Part | None:
        return self._parts.get(part_id)

    def require(self, part_id: str) -> Part:
        """Lookup that raises instead of returning None."""
        part = self._parts.get(part_id)
        if part is None:
            raise PartNotFoundError(part_id)
        return part

    def list(self) -> tuple[Part, ...]:
        return tuple(self._parts.values())

    def create(self, part: Part) -> Part:
        if part.id in self._parts:
            raise DuplicatePartError(part.id)
        self._parts[part.id] = part
        logger.info(
            "part_created",
            extra={"part_id": part.id, "area": part.area, "quantity": part.quantity},
        )
        return part

    def update(self, part_id: str, updates: Mapping[str, Any], now: datetime) -> Part:
        updated = merge_updates(self.require(part_id), updates, now)
        self._parts[part_id] = updated
        logger.info(
            "part_updated",
            extra={"part_id": part_id, "fields": sorted(updates)},
        )
        return updated

    def delete(self, part_id: str) -> Part:
        removed = self.require(part_id)
        del self._parts[part_id]
        logger.info("part_deleted", extra={"part_id": part_id})
        return removed

    def apply_quantity_effect(self, part_id: str, delta: int, now: datetime) -> Part:
        """Apply ``delta`` to the part's *current* quantity, clamped at 0.

        The record is read at application time, never from a captured
        copy, so interleaved effects compose without lost updates.
        """
        before = self.require(part_id)
        after = with_quantity_delta(before, delta, now)
        self._parts[part_id] = after
        logger.info(
            "quantity_effect_applied",
            extra={
                "part_id": part_id,
                "delta": delta,
                "quantity_before": before.quantity,
                "quantity_after": after.quantity,
                "clamped": before.quantity + delta < 0,
            },
        )
        return after

    def replace_all(self, parts: Iterable[Part]) -> None:
        """Swap in a whole new table (restore / reset). Ids must be unique."""
        table: dict[str, Part] = {}
        for part in parts:
            if part.id in table:
                raise DuplicatePartError(part.id)
            table[part.id] = part
        self._parts = table
