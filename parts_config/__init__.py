"""
parts_config -- single public entrypoint for inventory configuration.

Responsibility:
    ``get_active_config()`` is the only way the runtime obtains store
    layout, users, factory-default parts, storage keys and approval
    settings.  YAML loading is internal.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- structural or validation failures.
    - ``yaml.YAMLError`` -- malformed YAML.

Every successful call emits a ``PARTS_CONFIG_TRACE`` log entry.
"""

from __future__ import annotations

import logging
from pathlib import Path

from parts_config.loader import load_config
from parts_config.schema import InventoryConfig
from parts_config.validator import validate_config

_logger = logging.getLogger("parts_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "inventory.yaml"


def get_active_config(config_path: Path | None = None) -> InventoryConfig:
    """Load, validate and return the inventory configuration.

    Args:
        config_path: Override path to a YAML file.  Defaults to the
            bundled ``defaults/inventory.yaml``.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    config = load_config(path)

    validation = validate_config(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_warning", extra={"detail": warning})

    _logger.info(
        "PARTS_CONFIG_TRACE",
        extra={
            "trace_type": "PARTS_CONFIG_TRACE",
            "config_name": config.name,
            "config_version": config.version,
            "checksum": config.checksum,
            "area_count": len(config.storage_areas),
            "user_count": len(config.users),
            "seed_part_count": len(config.seed_parts),
        },
    )
    return config


__all__ = ["DEFAULT_CONFIG_PATH", "InventoryConfig", "get_active_config"]
