"""
Configuration Schema (``parts_config.schema``).

Frozen dataclasses produced by the loader from ``inventory.yaml``.
Declarative data only; ``parts_config.bridges`` turns them into kernel
objects.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StorageAreaDef:
    id: str
    name: str
    row: int
    col: int


@dataclass(frozen=True)
class UserDef:
    """A known user. Passwords are not configuration."""

    id: str
    name: str
    role: str
    can_decide: bool


@dataclass(frozen=True)
class SeedPartDef:
    """A factory-default part. ``lastUpdated`` is stamped at seed time."""

    id: str
    name: str
    model: str
    spec: str
    area: str
    quantity: int
    min_level: int
    image_url: str = ""


@dataclass(frozen=True)
class StorageKeyDef:
    parts: str = "store_parts"
    transactions: str = "store_transactions"
    snapshot: str = "store_snapshot"


@dataclass(frozen=True)
class ApprovalSettings:
    gate_all_mutations: bool = False
    strict_decisions: bool = True
    require_decider_capability: bool = False


@dataclass(frozen=True)
class InventoryConfig:
    """The whole runtime configuration."""

    name: str
    version: int
    storage_areas: tuple[StorageAreaDef, ...]
    users: tuple[UserDef, ...]
    seed_parts: tuple[SeedPartDef, ...]
    storage_keys: StorageKeyDef = StorageKeyDef()
    approval: ApprovalSettings = ApprovalSettings()
    checksum: str = ""

    @property
    def area_ids(self) -> tuple[str, ...]:
        return tuple(a.id for a in self.storage_areas)

    def user(self, user_id: str) -> UserDef | None:
        for u in self.users:
            if u.id == user_id:
                return u
        return None
