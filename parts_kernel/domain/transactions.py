"""
Transaction domain types (``parts_kernel.domain.transactions``).

Responsibility
--------------
Pure value objects for the ledger: transaction type and status enums, the
status transition table, the per-type payload variant, the Transaction
record itself, and the signed quantity effect.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  May import only
from ``domain/parts`` and ``exceptions``.

Invariants enforced
-------------------
* Status moves only PENDING -> APPROVED or PENDING -> REJECTED.
  COMPLETED is assigned at creation and is terminal.
  ``TRANSACTION_TRANSITIONS`` is the single source of truth.
* A transaction's payload is selected by its type: a candidate part only
  on CREATE, field updates only on UPDATE, nothing otherwise.
* APPROVAL entries are synthetic audit records: always COMPLETED,
  quantity 0, and never themselves subject to approval.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Union

from parts_kernel.domain.parts import Part
from parts_kernel.exceptions import InvalidTransitionError


class TransactionType(str, Enum):
    """What a transaction does to the registry."""

    IN = "IN"
    OUT = "OUT"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVAL = "APPROVAL"


class TransactionStatus(str, Enum):
    """Transaction lifecycle states."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset({
        TransactionStatus.APPROVED,
        TransactionStatus.REJECTED,
    }),
    TransactionStatus.APPROVED: frozenset(),
    TransactionStatus.REJECTED: frozenset(),
    TransactionStatus.COMPLETED: frozenset(),
}

TERMINAL_TRANSACTION_STATUSES: frozenset[TransactionStatus] = frozenset({
    TransactionStatus.APPROVED,
    TransactionStatus.REJECTED,
    TransactionStatus.COMPLETED,
})

# Types whose effect on the registry is a signed quantity delta.
QUANTITY_TYPES: frozenset[TransactionType] = frozenset({
    TransactionType.IN,
    TransactionType.OUT,
})


# =========================================================================
# Per-type payload
# =========================================================================


@dataclass(frozen=True)
class NoPayload:
    """Transaction carries nothing beyond its scalar fields."""


@dataclass(frozen=True)
class CandidatePart:
    """The full part a pending CREATE will add to the registry on approval."""

    part: Part


@dataclass(frozen=True)
class FieldUpdates:
    """Field overrides a gated UPDATE will merge into the part on approval."""

    changes: tuple[tuple[str, Any], ...]

    @classmethod
    def from_mapping(cls, updates: Mapping[str, Any]) -> FieldUpdates:
        return cls(changes=tuple(sorted(updates.items())))

    def as_dict(self) -> dict[str, Any]:
        return dict(self.changes)


TransactionPayload = Union[NoPayload, CandidatePart, FieldUpdates]

NO_PAYLOAD = NoPayload()

_PAYLOAD_TYPES: dict[type, frozenset[TransactionType]] = {
    NoPayload: frozenset(TransactionType),
    CandidatePart: frozenset({TransactionType.CREATE}),
    FieldUpdates: frozenset({TransactionType.UPDATE}),
}


def payload_allowed(transaction_type: TransactionType, payload: TransactionPayload) -> bool:
    """True if ``payload`` is a legal variant for ``transaction_type``."""
    return transaction_type in _PAYLOAD_TYPES.get(type(payload), frozenset())


# =========================================================================
# Transaction
# =========================================================================


@dataclass(frozen=True)
class Transaction:
    """Immutable-once-decided record of a requested or completed action.

    ``approver_name`` is the only field that changes together with a
    PENDING -> APPROVED / REJECTED transition.
    """

    id: str
    part_id: str
    user_id: str
    user_name: str
    type: TransactionType
    quantity: int
    timestamp: datetime
    status: TransactionStatus
    note: str | None = None
    approver_name: str | None = None
    related_transaction_id: str | None = None
    payload: TransactionPayload = NO_PAYLOAD

    def __post_init__(self):
        if not payload_allowed(self.type, self.payload):
            raise ValueError(
                f"{type(self.payload).__name__} payload is not valid for {self.type.value}"
            )

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    @property
    def candidate_part(self) -> Part | None:
        if isinstance(self.payload, CandidatePart):
            return self.payload.part
        return None

    def with_decision(
        self,
        new_status: TransactionStatus,
        approver_name: str | None,
    ) -> Transaction:
        """Return the decided copy of this transaction.

        Raises:
            InvalidTransitionError: ``new_status`` is not reachable from the
                current status.
        """
        allowed = TRANSACTION_TRANSITIONS.get(self.status, frozenset())
        if new_status not in allowed:
            raise InvalidTransitionError(self.status.value, new_status.value)
        return replace(
            self,
            status=new_status,
            approver_name=approver_name or self.approver_name,
        )


def signed_quantity_effect(transaction_type: TransactionType, quantity: int) -> int:
    """IN adds, OUT subtracts, every other type has no signed effect."""
    if transaction_type == TransactionType.IN:
        return quantity
    if transaction_type == TransactionType.OUT:
        return -quantity
    return 0


def approval_note(
    decision: TransactionStatus,
    transaction_id: str,
    original_type: TransactionType,
) -> str:
    """Human-readable summary carried by a synthetic APPROVAL entry."""
    return f"{decision.value} transaction {transaction_id} ({original_type.value})"
