"""
Submitted actions and decisions (``parts_kernel.domain.actions``).

Responsibility
--------------
The inbound shapes the Approval Engine accepts -- ``SubmitAction`` and
``Decision`` -- and the structural validation that runs before anything is
written.  Checks that need the registry (duplicate id, unknown area,
missing target part) live in the engine.

Architecture position
---------------------
**Kernel domain layer** -- pure.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from parts_kernel.domain.actors import Actor
from parts_kernel.domain.parts import Part, UPDATABLE_PART_FIELDS, require_complete
from parts_kernel.domain.transactions import (
    QUANTITY_TYPES,
    TransactionStatus,
    TransactionType,
)
from parts_kernel.exceptions import (
    ActionValidationError,
    InvalidDecisionError,
    InvalidQuantityError,
    MissingPartFieldsError,
)


class Decision(str, Enum):
    """What a decider can do with a pending transaction."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def status(self) -> TransactionStatus:
        return TransactionStatus(self.value)

    @classmethod
    def parse(cls, value: Decision | TransactionStatus | str) -> Decision:
        """Accept a Decision, the matching status, or its string value."""
        raw = value.value if isinstance(value, Enum) else str(value)
        try:
            return cls(raw.upper())
        except ValueError:
            raise InvalidDecisionError(raw) from None


@dataclass(frozen=True)
class SubmitAction:
    """An intended change to the registry, as requested by ``actor``.

    ``quantity`` is the magnitude of the stock effect for IN/OUT.  For other
    types it records the part's stock level alongside the request and has
    no signed effect.  ``new_part`` is required for CREATE; ``updates`` is
    required for UPDATE.
    """

    part_id: str
    actor: Actor
    type: TransactionType
    quantity: int = 0
    new_part: Part | None = None
    updates: Mapping[str, Any] = field(default_factory=dict)
    note: str | None = None


def validate_action(action: SubmitAction) -> None:
    """Structural checks on a submitted action.

    Raises:
        ActionValidationError: APPROVAL submitted directly, or a payload on
            the wrong type.
        InvalidQuantityError: IN/OUT quantity below 1, a negative quantity
            on any other type, or a bad UPDATE count field.
        MissingPartFieldsError: CREATE without a complete part, or with a
            part whose id disagrees with ``part_id``.
    """
    if action.type == TransactionType.APPROVAL:
        raise ActionValidationError(
            "APPROVAL entries are written by the approval engine, not submitted"
        )
    if not action.part_id:
        raise ActionValidationError("part_id is required")

    if not isinstance(action.quantity, int) or isinstance(action.quantity, bool):
        raise InvalidQuantityError(
            action.type.value, action.quantity, "quantity must be an integer",
        )
    if action.type in QUANTITY_TYPES and action.quantity < 1:
        raise InvalidQuantityError(
            action.type.value, action.quantity, "quantity must be >= 1",
        )
    if action.quantity < 0:
        raise InvalidQuantityError(
            action.type.value, action.quantity, "quantity must be >= 0",
        )

    if action.type == TransactionType.CREATE:
        if action.new_part is None:
            raise MissingPartFieldsError(action.part_id, ["new_part"])
        require_complete(action.new_part)
        if action.new_part.id != action.part_id:
            raise MissingPartFieldsError(action.part_id, ["id"])
    elif action.new_part is not None:
        raise ActionValidationError(
            f"new_part is only valid on CREATE, not {action.type.value}"
        )

    if action.type == TransactionType.UPDATE:
        if not action.updates:
            raise ActionValidationError("UPDATE requires at least one field")
        unknown = sorted(set(action.updates) - UPDATABLE_PART_FIELDS - {"id"})
        if unknown:
            raise ActionValidationError(
                f"UPDATE names unknown fields: {', '.join(unknown)}"
            )
        _validate_update_values(action.updates)
    elif action.updates:
        raise ActionValidationError(
            f"updates are only valid on UPDATE, not {action.type.value}"
        )


_COUNT_FIELDS: frozenset[str] = frozenset({"quantity", "min_level"})


def _validate_update_values(updates: Mapping[str, Any]) -> None:
    """Check each UPDATE value against the type of the Part field it sets."""
    for name, value in updates.items():
        if name in _COUNT_FIELDS:
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidQuantityError(
                    TransactionType.UPDATE.value, value,
                    f"{name} must be an integer",
                )
            if value < 0:
                raise InvalidQuantityError(
                    TransactionType.UPDATE.value, value,
                    f"{name} must be >= 0",
                )
        elif not isinstance(value, str):
            raise ActionValidationError(
                f"UPDATE field {name} must be a string, got {type(value).__name__}"
            )
