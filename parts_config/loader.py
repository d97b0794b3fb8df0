"""
Configuration Loader (``parts_config.loader``).

Responsibility
--------------
Loads ``inventory.yaml`` and parses it into ``parts_config.schema``
dataclasses.  Runtime callers go through ``parts_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Wrong value types  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from parts_config.schema import (
    ApprovalSettings,
    InventoryConfig,
    SeedPartDef,
    StorageAreaDef,
    StorageKeyDef,
    UserDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return value


def _as_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def parse_storage_area(data: dict[str, Any]) -> StorageAreaDef:
    return StorageAreaDef(
        id=str(data["id"]),
        name=str(data["name"]),
        row=_as_int(data["row"], "row"),
        col=_as_int(data["col"], "col"),
    )


def parse_user(data: dict[str, Any]) -> UserDef:
    return UserDef(
        id=str(data["id"]),
        name=str(data["name"]),
        role=str(data.get("role", "OPERATOR")).upper(),
        can_decide=_as_bool(data.get("can_decide", False), "can_decide"),
    )


def parse_seed_part(data: dict[str, Any]) -> SeedPartDef:
    return SeedPartDef(
        id=str(data["id"]),
        name=str(data["name"]),
        model=str(data["model"]),
        spec=str(data["spec"]),
        area=str(data["area"]),
        quantity=_as_int(data["quantity"], "quantity"),
        min_level=_as_int(data["min_level"], "min_level"),
        image_url=str(data.get("image_url", "")),
    )


def parse_storage_keys(data: dict[str, Any] | None) -> StorageKeyDef:
    if not data:
        return StorageKeyDef()
    defaults = StorageKeyDef()
    return StorageKeyDef(
        parts=str(data.get("parts", defaults.parts)),
        transactions=str(data.get("transactions", defaults.transactions)),
        snapshot=str(data.get("snapshot", defaults.snapshot)),
    )


def parse_approval(data: dict[str, Any] | None) -> ApprovalSettings:
    if not data:
        return ApprovalSettings()
    defaults = ApprovalSettings()
    return ApprovalSettings(
        gate_all_mutations=_as_bool(
            data.get("gate_all_mutations", defaults.gate_all_mutations),
            "gate_all_mutations",
        ),
        strict_decisions=_as_bool(
            data.get("strict_decisions", defaults.strict_decisions),
            "strict_decisions",
        ),
        require_decider_capability=_as_bool(
            data.get("require_decider_capability", defaults.require_decider_capability),
            "require_decider_capability",
        ),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of the raw YAML data."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> InventoryConfig:
    return InventoryConfig(
        name=str(data["name"]),
        version=_as_int(data.get("version", 1), "version"),
        storage_areas=tuple(parse_storage_area(a) for a in data["storage_areas"]),
        users=tuple(parse_user(u) for u in data.get("users") or []),
        seed_parts=tuple(parse_seed_part(p) for p in data.get("seed_parts") or []),
        storage_keys=parse_storage_keys(data.get("storage_keys")),
        approval=parse_approval(data.get("approval")),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> InventoryConfig:
    return parse_config(load_yaml_file(path))
