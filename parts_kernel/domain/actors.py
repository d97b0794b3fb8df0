"""
Actor capability (``parts_kernel.domain.actors``).

The kernel knows only who is acting and whether they may decide.  Roles
are carried for display; no authorization logic hangs off them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ActorRole(str, Enum):
    ADMIN = "ADMIN"
    APPROVER = "APPROVER"
    OPERATOR = "OPERATOR"


@dataclass(frozen=True)
class Actor:
    """The acting user: identity, display name, and the decider flag."""

    id: str
    name: str
    can_decide: bool = False
    role: ActorRole = ActorRole.OPERATOR
