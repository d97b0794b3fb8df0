"""
Configuration Validator (``parts_config.validator``).

Cross-field checks the loader cannot make record by record.  A
configuration with errors must not be used.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from parts_config.schema import InventoryConfig
from parts_kernel.domain.actors import ActorRole


@dataclass
class ConfigValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_config(config: InventoryConfig) -> ConfigValidationResult:
    result = ConfigValidationResult()

    _validate_unique("storage area", [a.id for a in config.storage_areas], result)
    _validate_unique("user", [u.id for u in config.users], result)
    _validate_unique("seed part", [p.id for p in config.seed_parts], result)
    _validate_unique(
        "storage key",
        [config.storage_keys.parts, config.storage_keys.transactions, config.storage_keys.snapshot],
        result,
    )
    _validate_seed_parts(config, result)
    _validate_roles(config, result)

    if not config.storage_areas:
        result.add_error("at least one storage area is required")
    if config.users and not any(u.can_decide for u in config.users):
        result.add_warning("no configured user can decide pending transactions")

    return result


def _validate_unique(label: str, ids: list[str], result: ConfigValidationResult) -> None:
    for value, count in Counter(ids).items():
        if count > 1:
            result.add_error(f"duplicate {label} id {value!r}")


def _validate_seed_parts(config: InventoryConfig, result: ConfigValidationResult) -> None:
    areas = set(config.area_ids)
    for part in config.seed_parts:
        if part.area not in areas:
            result.add_error(f"seed part {part.id} references unknown area {part.area!r}")
        if part.quantity < 0 or part.min_level < 0:
            result.add_error(f"seed part {part.id} has a negative quantity or min_level")


def _validate_roles(config: InventoryConfig, result: ConfigValidationResult) -> None:
    known = {r.value for r in ActorRole}
    for user in config.users:
        if user.role not in known:
            result.add_error(f"user {user.id} has unknown role {user.role!r}")
