"""
Approval classification (``parts_kernel.domain.policy``).

Decides, for a submitted action, whether it applies at once (COMPLETED) or
waits for a decider (PENDING).

Rule:
    * A decider's own submissions are always COMPLETED.
    * Otherwise IN, OUT and CREATE are PENDING.
    * UPDATE and DELETE are COMPLETED unless ``gate_all_mutations`` is set,
      in which case they are PENDING like the rest.
"""

from __future__ import annotations

from dataclasses import dataclass

from parts_kernel.domain.actors import Actor
from parts_kernel.domain.transactions import TransactionStatus, TransactionType

ALWAYS_GATED_TYPES: frozenset[TransactionType] = frozenset({
    TransactionType.IN,
    TransactionType.OUT,
    TransactionType.CREATE,
})

OPTIONALLY_GATED_TYPES: frozenset[TransactionType] = frozenset({
    TransactionType.UPDATE,
    TransactionType.DELETE,
})


@dataclass(frozen=True)
class ApprovalPolicy:
    gate_all_mutations: bool = False
    strict_decisions: bool = True
    require_decider_capability: bool = False

    @property
    def gated_types(self) -> frozenset[TransactionType]:
        if self.gate_all_mutations:
            return ALWAYS_GATED_TYPES | OPTIONALLY_GATED_TYPES
        return ALWAYS_GATED_TYPES

    def classify(self, transaction_type: TransactionType, actor: Actor) -> TransactionStatus:
        if actor.can_decide or transaction_type not in self.gated_types:
            return TransactionStatus.COMPLETED
        return TransactionStatus.PENDING
