"""
Typed Exception Hierarchy for the Parts Kernel.

Every error has a typed class, a class-level machine-readable ``code`` and
structured attributes, so callers catch by type and read fields instead of
parsing messages:

    try:
        engine.decide(tx_id, Decision.APPROVED, decider)
    except TransactionNotPendingError as e:
        show_banner(f"{e.transaction_id} is already {e.current_status}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PartsKernelError (base)
    |
    +-- ActionValidationError
    |   +-- InvalidQuantityError
    |   +-- MissingPartFieldsError
    |   +-- UnknownStorageAreaError
    |   +-- DuplicatePartError
    |   +-- InvalidDecisionError
    |
    +-- NotFoundError
    |   +-- PartNotFoundError
    |   +-- TransactionNotFoundError
    |
    +-- StateError
    |   +-- TransactionNotPendingError
    |   +-- InvalidTransitionError
    |   +-- ImmutabilityViolationError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedDeciderError
    |
    +-- PersistenceError
        +-- StorageUnavailableError
        +-- SerializationError
        +-- SnapshotNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|--------------------------------------
Validation   | INVALID_QUANTITY          | IN/OUT quantity < 1, negative stock
             | MISSING_PART_FIELDS       | CREATE without a complete part
             | UNKNOWN_STORAGE_AREA      | Part area not in the store layout
             | DUPLICATE_PART            | CREATE with an id already registered
             | INVALID_DECISION          | Decision other than APPROVED/REJECTED
-------------|---------------------------|--------------------------------------
Not found    | PART_NOT_FOUND            | Part id not in the registry
             | TRANSACTION_NOT_FOUND     | Transaction id not in the ledger
-------------|---------------------------|--------------------------------------
State        | TRANSACTION_NOT_PENDING   | Deciding an already-decided entry
             | INVALID_TRANSITION        | Status change outside the table
             | IMMUTABILITY_VIOLATION    | Editing a decided transaction
-------------|---------------------------|--------------------------------------
Authorization| UNAUTHORIZED_DECIDER      | Decider lacks the capability flag
-------------|---------------------------|--------------------------------------
Persistence  | STORAGE_UNAVAILABLE       | Backend read/write failed
             | SERIALIZATION_ERROR       | Stored value is not decodable
             | SNAPSHOT_NOT_FOUND        | Restore with no saved snapshot
"""


class PartsKernelError(Exception):
    """
    Base exception for all parts kernel errors.

    All subclasses carry a ``code`` class attribute.
    """

    code: str = "PARTS_KERNEL_ERROR"


# Validation


class ActionValidationError(PartsKernelError):
    """A submitted action or decision is malformed. Nothing was applied."""

    code: str = "VALIDATION_ERROR"


class InvalidQuantityError(ActionValidationError):
    """Quantity is out of range for the action type."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, transaction_type: str, quantity: int, reason: str):
        self.transaction_type = transaction_type
        self.quantity = quantity
        self.reason = reason
        super().__init__(
            f"Invalid quantity {quantity} for {transaction_type}: {reason}"
        )


class MissingPartFieldsError(ActionValidationError):
    """A CREATE action does not carry a fully-formed part."""

    code: str = "MISSING_PART_FIELDS"

    def __init__(self, part_id: str, missing_fields: list[str]):
        self.part_id = part_id
        self.missing_fields = missing_fields
        super().__init__(
            f"Part {part_id or '<no id>'} is missing required fields: "
            f"{', '.join(missing_fields)}"
        )


class UnknownStorageAreaError(ActionValidationError):
    """Part references an area code that is not in the store layout."""

    code: str = "UNKNOWN_STORAGE_AREA"

    def __init__(self, part_id: str, area: str):
        self.part_id = part_id
        self.area = area
        super().__init__(f"Part {part_id} references unknown storage area {area!r}")


class DuplicatePartError(ActionValidationError):
    """A CREATE reuses an id already present in the registry."""

    code: str = "DUPLICATE_PART"

    def __init__(self, part_id: str):
        self.part_id = part_id
        super().__init__(f"Part already exists: {part_id}")


class InvalidDecisionError(ActionValidationError):
    """Decision value is not one of APPROVED / REJECTED."""

    code: str = "INVALID_DECISION"

    def __init__(self, decision: str):
        self.decision = decision
        super().__init__(f"Invalid decision: {decision!r}")


# Not found


class NotFoundError(PartsKernelError):
    """Base exception for lookups that found nothing."""

    code: str = "NOT_FOUND"


class PartNotFoundError(NotFoundError):
    """Part with given id was not found."""

    code: str = "PART_NOT_FOUND"

    def __init__(self, part_id: str):
        self.part_id = part_id
        super().__init__(f"Part not found: {part_id}")


class TransactionNotFoundError(NotFoundError):
    """Transaction with given id was not found."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


# State


class StateError(PartsKernelError):
    """Base exception for lifecycle violations."""

    code: str = "STATE_ERROR"


class TransactionNotPendingError(StateError):
    """Decision requested on a transaction that is no longer pending."""

    code: str = "TRANSACTION_NOT_PENDING"

    def __init__(self, transaction_id: str, current_status: str):
        self.transaction_id = transaction_id
        self.current_status = current_status
        super().__init__(
            f"Transaction {transaction_id} is not pending "
            f"(current status: {current_status})"
        )


class InvalidTransitionError(StateError):
    """Status change not present in the transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition: {from_status} -> {to_status}")


class ImmutabilityViolationError(StateError):
    """Attempt to modify a record that is immutable in its current state."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")


# Authorization


class AuthorizationError(PartsKernelError):
    """Base exception for capability checks."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedDeciderError(AuthorizationError):
    """Actor tried to decide a transaction without the decider capability."""

    code: str = "UNAUTHORIZED_DECIDER"

    def __init__(self, actor_id: str, transaction_id: str):
        self.actor_id = actor_id
        self.transaction_id = transaction_id
        super().__init__(
            f"Actor {actor_id} cannot decide transaction {transaction_id}"
        )


# Persistence


class PersistenceError(PartsKernelError):
    """
    Base exception for storage failures.

    Never corrupts in-memory state; the running session stays authoritative.
    """

    code: str = "PERSISTENCE_ERROR"


class StorageUnavailableError(PersistenceError):
    """The key-value backend could not be read or written."""

    code: str = "STORAGE_UNAVAILABLE"

    def __init__(self, key: str, operation: str, reason: str):
        self.key = key
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage {operation} failed for key {key!r}: {reason}")


class SerializationError(PersistenceError):
    """A stored value could not be encoded or decoded."""

    code: str = "SERIALIZATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Cannot decode value under {key!r}: {reason}")


class SnapshotNotFoundError(PersistenceError):
    """Restore requested but no snapshot was ever saved."""

    code: str = "SNAPSHOT_NOT_FOUND"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No saved snapshot under {key!r}")
