"""
parts_kernel.services.approval_engine -- submit / decide orchestration.

Responsibility:
    Classifies each submitted action as COMPLETED (applied now) or PENDING
    (parked for a decider), writes the ledger entry, and applies registry
    effects.  Later applies a decider's APPROVED / REJECTED verdict and
    appends the synthetic APPROVAL audit entry.  Owns neither store; it
    only calls the registry and ledger mutation contracts.

Architecture position:
    Kernel > Services.  May import from domain/ and services/.

Invariants enforced:
    - A submit or decide is one store mutation: ledger entry, registry
      effect and audit entry are observed together or not at all.
    - Registry quantity effects are computed from the part's current
      record at application time.
    - Re-deciding with the status a transaction already has is a no-op,
      so an approval's quantity effect is applied exactly once.
    - Every effective decision appends exactly one APPROVAL entry whose
      ``related_transaction_id`` is the decided transaction.

Failure modes:
    - ActionValidationError family: malformed action, duplicate CREATE id,
      unknown storage area.  Nothing is written.
    - PartNotFoundError: IN/OUT/UPDATE/DELETE against an unknown part.
    - TransactionNotFoundError / TransactionNotPendingError on decide when
      ``strict_decisions`` is set; silently ignored otherwise.
    - UnauthorizedDeciderError when ``require_decider_capability`` is set
      and the decider lacks the flag.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from parts_kernel.domain.actions import Decision, SubmitAction, validate_action
from parts_kernel.domain.actors import Actor
from parts_kernel.domain.parts import Part
from parts_kernel.domain.policy import ApprovalPolicy
from parts_kernel.domain.transactions import (
    NO_PAYLOAD,
    CandidatePart,
    FieldUpdates,
    Transaction,
    TransactionPayload,
    TransactionStatus,
    TransactionType,
    approval_note,
    signed_quantity_effect,
)
from parts_kernel.exceptions import (
    DuplicatePartError,
    TransactionNotFoundError,
    TransactionNotPendingError,
    UnauthorizedDeciderError,
    UnknownStorageAreaError,
)
from parts_kernel.logging_config import LogContext, get_logger
from parts_kernel.services.inventory_store import InventoryStore

logger = get_logger("services.approval_engine")


class ApprovalEngine:
    """Decides immediate-apply vs. pending and applies human decisions."""

    def __init__(
        self,
        store: InventoryStore,
        policy: ApprovalPolicy | None = None,
        area_ids: Iterable[str] | None = None,
    ) -> None:
        self._store = store
        self._policy = policy or ApprovalPolicy()
        self._area_ids = frozenset(area_ids) if area_ids is not None else None

    @property
    def policy(self) -> ApprovalPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # submit
    # ------------------------------------------------------------------

    def submit(self, action: SubmitAction) -> str:
        """Record ``action`` and apply it now if it needs no decision.

        Returns:
            The new transaction's id.
        """
        validate_action(action)

        with LogContext.bind(actor_id=action.actor.id, part_id=action.part_id):
            with self._store.mutation("submit") as store:
                self._check_against_registry(action, store)

                status = self._policy.classify(action.type, action.actor)
                now = store.clock.now()
                tx = Transaction(
                    id=store.ledger.allocate_id(action.type),
                    part_id=action.part_id,
                    user_id=action.actor.id,
                    user_name=action.actor.name,
                    type=action.type,
                    quantity=action.quantity,
                    timestamp=now,
                    status=status,
                    note=action.note,
                    payload=self._payload_for(action, status),
                )
                store.ledger.append(tx)

                if status == TransactionStatus.COMPLETED:
                    self._apply(
                        store,
                        transaction_type=action.type,
                        part_id=action.part_id,
                        quantity=action.quantity,
                        candidate=action.new_part,
                        updates=action.updates,
                        now=now,
                    )

            logger.info(
                "transaction_submitted",
                extra={
                    "transaction_id": tx.id,
                    "type": tx.type.value,
                    "status": tx.status.value,
                    "quantity": tx.quantity,
                },
            )
        return tx.id

    # ------------------------------------------------------------------
    # decide
    # ------------------------------------------------------------------

    def decide(
        self,
        transaction_id: str,
        decision: Decision | TransactionStatus | str,
        decider: Actor,
    ) -> Transaction | None:
        """Apply a decider's verdict to a pending transaction.

        Effect order inside one mutation: (a) the transaction's status and
        approver name, (b) the registry effect if APPROVED, (c) the
        APPROVAL audit entry at the newest position.

        Returns:
            The appended APPROVAL audit entry, or None when the call was a
            no-op (same decision repeated, or a lenient-mode miss).
        """
        verdict = Decision.parse(decision)

        with LogContext.bind(actor_id=decider.id, transaction_id=transaction_id):
            with self._store.mutation("decide") as store:
                tx = store.ledger.get(transaction_id)
                if tx is None:
                    if self._policy.strict_decisions:
                        raise TransactionNotFoundError(transaction_id)
                    logger.info("decision_ignored", extra={"reason": "not_found"})
                    return None

                if self._policy.require_decider_capability and not decider.can_decide:
                    raise UnauthorizedDeciderError(decider.id, transaction_id)

                if tx.status == verdict.status:
                    logger.info(
                        "decision_ignored",
                        extra={"reason": "already_decided", "status": tx.status.value},
                    )
                    return None

                if not tx.is_pending:
                    if self._policy.strict_decisions:
                        raise TransactionNotPendingError(transaction_id, tx.status.value)
                    logger.info(
                        "decision_ignored",
                        extra={"reason": "not_pending", "status": tx.status.value},
                    )
                    return None

                now = store.clock.now()
                decided = store.ledger.mark_decided(
                    transaction_id, verdict.status, decider.name,
                )

                if verdict == Decision.APPROVED:
                    self._apply_approved(store, decided, now)

                audit = Transaction(
                    id=store.ledger.allocate_id(TransactionType.APPROVAL),
                    part_id=decided.part_id,
                    user_id=decider.id,
                    user_name=decider.name,
                    type=TransactionType.APPROVAL,
                    quantity=0,
                    timestamp=now,
                    status=TransactionStatus.COMPLETED,
                    related_transaction_id=decided.id,
                    note=approval_note(verdict.status, decided.id, decided.type),
                )
                store.ledger.append(audit)

            logger.info(
                "transaction_decided",
                extra={
                    "decision": verdict.value,
                    "type": decided.type.value,
                    "audit_transaction_id": audit.id,
                },
            )
        return audit

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_against_registry(self, action: SubmitAction, store: InventoryStore) -> None:
        if action.type == TransactionType.CREATE:
            if action.part_id in store.registry:
                raise DuplicatePartError(action.part_id)
            for pending in store.ledger.pending():
                if pending.type == TransactionType.CREATE and pending.part_id == action.part_id:
                    raise DuplicatePartError(action.part_id)
            self._check_area(action.part_id, action.new_part.area)
        else:
            store.registry.require(action.part_id)
            if action.type == TransactionType.UPDATE and "area" in action.updates:
                self._check_area(action.part_id, action.updates["area"])

    def _check_area(self, part_id: str, area: str) -> None:
        if self._area_ids is not None and area not in self._area_ids:
            raise UnknownStorageAreaError(part_id, area)

    def _payload_for(
        self,
        action: SubmitAction,
        status: TransactionStatus,
    ) -> TransactionPayload:
        if status != TransactionStatus.PENDING:
            return NO_PAYLOAD
        if action.type == TransactionType.CREATE:
            return CandidatePart(part=action.new_part)
        if action.type == TransactionType.UPDATE:
            return FieldUpdates.from_mapping(action.updates)
        return NO_PAYLOAD

    def _apply_approved(
        self,
        store: InventoryStore,
        tx: Transaction,
        now: datetime,
    ) -> None:
        """Registry effect of approving ``tx``, from its recorded fields."""
        if tx.type != TransactionType.CREATE and tx.part_id not in store.registry:
            # Target removed while the request waited; the decision still stands.
            logger.warning(
                "approved_effect_skipped",
                extra={"reason": "part_missing", "type": tx.type.value},
            )
            return
        updates = tx.payload.as_dict() if isinstance(tx.payload, FieldUpdates) else {}
        self._apply(
            store,
            transaction_type=tx.type,
            part_id=tx.part_id,
            quantity=tx.quantity,
            candidate=tx.candidate_part,
            updates=updates,
            now=now,
        )

    def _apply(
        self,
        store: InventoryStore,
        *,
        transaction_type: TransactionType,
        part_id: str,
        quantity: int,
        candidate: Part | None,
        updates: Mapping[str, Any],
        now: datetime,
    ) -> None:
        delta = signed_quantity_effect(transaction_type, quantity)
        if delta:
            store.registry.apply_quantity_effect(part_id, delta, now)
        elif transaction_type == TransactionType.CREATE and candidate is not None:
            store.registry.create(candidate)
        elif transaction_type == TransactionType.UPDATE:
            store.registry.update(part_id, updates, now)
        elif transaction_type == TransactionType.DELETE:
            store.registry.delete(part_id)
