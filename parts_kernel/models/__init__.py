"""ORM models. Import here so ``Base.metadata`` sees every table."""

from parts_kernel.models.kv_entry import KeyValueEntry

__all__ = ["KeyValueEntry"]
