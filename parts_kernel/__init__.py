"""
Parts Kernel - spare-parts inventory with approval-gated stock changes.

- Part registry with non-negative, clamped quantities
- Append-only transaction ledger with a synthetic audit trail
- Approval engine deciding immediate-apply vs. pending
- Best-effort key-value persistence with a manual snapshot slot
"""

__version__ = "0.1.0"
