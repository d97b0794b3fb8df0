"""
Config -> Kernel Bridges.

Convert configuration dataclasses into kernel objects.  These live here
because the kernel never imports ``parts_config``.

Usage:
    config = get_active_config()
    policy = build_approval_policy(config)
    parts = build_seed_parts(config, clock.now())
"""

from __future__ import annotations

from datetime import datetime

from parts_config.schema import InventoryConfig, UserDef
from parts_kernel.domain.actors import Actor, ActorRole
from parts_kernel.domain.clock import Clock, SystemClock
from parts_kernel.domain.parts import Part, StorageArea
from parts_kernel.domain.policy import ApprovalPolicy
from parts_kernel.services.approval_engine import ApprovalEngine
from parts_kernel.services.inventory_service import InventoryService
from parts_kernel.services.inventory_store import InventoryStore
from parts_kernel.storage.key_value import KeyValueStore
from parts_kernel.storage.persistence import PersistenceAdapter, StorageKeys


def build_storage_areas(config: InventoryConfig) -> tuple[StorageArea, ...]:
    return tuple(
        StorageArea(id=a.id, name=a.name, row=a.row, col=a.col)
        for a in config.storage_areas
    )


def build_actor(user: UserDef) -> Actor:
    return Actor(
        id=user.id,
        name=user.name,
        can_decide=user.can_decide,
        role=ActorRole(user.role),
    )


def build_actors(config: InventoryConfig) -> dict[str, Actor]:
    return {u.id: build_actor(u) for u in config.users}


def build_seed_parts(config: InventoryConfig, now: datetime) -> tuple[Part, ...]:
    return tuple(
        Part(
            id=p.id,
            name=p.name,
            model=p.model,
            spec=p.spec,
            area=p.area,
            quantity=p.quantity,
            min_level=p.min_level,
            image_url=p.image_url,
            last_updated=now,
        )
        for p in config.seed_parts
    )


def build_approval_policy(config: InventoryConfig) -> ApprovalPolicy:
    return ApprovalPolicy(
        gate_all_mutations=config.approval.gate_all_mutations,
        strict_decisions=config.approval.strict_decisions,
        require_decider_capability=config.approval.require_decider_capability,
    )


def build_storage_keys(config: InventoryConfig) -> StorageKeys:
    return StorageKeys(
        parts=config.storage_keys.parts,
        transactions=config.storage_keys.transactions,
        snapshot=config.storage_keys.snapshot,
    )


def build_inventory_service(
    config: InventoryConfig,
    kv_store: KeyValueStore,
    clock: Clock | None = None,
    load: bool = True,
) -> InventoryService:
    """Wire store, engine and persistence from ``config``.

    With ``load`` set, the store is populated from ``kv_store`` (seed
    parts when nothing was saved yet).
    """
    clock = clock or SystemClock()
    store = InventoryStore(clock=clock)
    engine = ApprovalEngine(
        store,
        policy=build_approval_policy(config),
        area_ids=config.area_ids,
    )
    service = InventoryService(
        store,
        PersistenceAdapter(kv_store, build_storage_keys(config), clock),
        engine=engine,
        seed_parts=build_seed_parts(config, clock.now()),
    )
    if load:
        service.load()
    return service
