"""
Part domain types (``parts_kernel.domain.parts``).

Responsibility
--------------
Frozen value objects for the store layout and the spare-part record, plus
the pure transforms the Part Registry applies: partial field merge and the
zero-clamped quantity effect.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``Part.quantity`` and ``Part.min_level`` are non-negative integers;
  construction with a negative value raises ``InvalidQuantityError``.
* ``with_quantity_delta`` never produces a negative quantity: any
  decrement past zero clamps to 0.
* ``Part.id`` is stable for life; ``merge_updates`` refuses to change it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Mapping

from parts_kernel.exceptions import (
    ImmutabilityViolationError,
    InvalidQuantityError,
    MissingPartFieldsError,
)


@dataclass(frozen=True)
class StorageArea:
    """A shelf zone in the store layout grid (e.g. ``A1`` Positioner)."""

    id: str
    name: str
    row: int
    col: int


@dataclass(frozen=True)
class Part:
    """A tracked spare part and its current stock level.

    A part is at or below its low-stock threshold when
    ``quantity <= min_level``.
    """

    id: str
    name: str
    model: str
    spec: str
    area: str
    quantity: int
    min_level: int
    image_url: str
    last_updated: datetime

    def __post_init__(self):
        if self.quantity < 0:
            raise InvalidQuantityError("PART", self.quantity, "quantity must be >= 0")
        if self.min_level < 0:
            raise InvalidQuantityError("PART", self.min_level, "min_level must be >= 0")

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_level


# Fields a CREATE payload must carry with a non-empty value.
REQUIRED_PART_FIELDS: tuple[str, ...] = ("id", "name", "model", "spec", "area")

# Fields callers may change through an UPDATE.
UPDATABLE_PART_FIELDS: frozenset[str] = frozenset(
    f.name for f in fields(Part)
) - {"id", "last_updated"}


def missing_part_fields(part: Part) -> list[str]:
    """Return the required fields that are blank on ``part``."""
    return [
        name for name in REQUIRED_PART_FIELDS
        if not str(getattr(part, name) or "").strip()
    ]


def require_complete(part: Part) -> None:
    """Raise ``MissingPartFieldsError`` unless every required field is set."""
    missing = missing_part_fields(part)
    if missing:
        raise MissingPartFieldsError(part.id, missing)


def merge_updates(part: Part, updates: Mapping[str, Any], now: datetime) -> Part:
    """Overlay ``updates`` onto ``part`` and refresh ``last_updated``.

    Unknown keys are ignored.  A caller-supplied ``last_updated`` is
    overwritten with ``now``.
    """
    if "id" in updates and updates["id"] != part.id:
        raise ImmutabilityViolationError(
            entity_type="Part",
            entity_id=part.id,
            reason="part id is stable for life",
        )
    changes = {k: v for k, v in updates.items() if k in UPDATABLE_PART_FIELDS}
    return replace(part, **changes, last_updated=now)


def with_quantity_delta(part: Part, delta: int, now: datetime) -> Part:
    """Apply a signed quantity effect, clamping at zero."""
    return replace(part, quantity=max(0, part.quantity + delta), last_updated=now)
