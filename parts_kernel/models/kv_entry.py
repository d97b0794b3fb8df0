"""
Module: parts_kernel.models.kv_entry
Responsibility: ORM row for one key of the durable key-value store.

Architecture position: Kernel > Models.  May import from db/base.py only.

Each logical slot (live parts, live transactions, snapshot) is one row
whose ``value`` holds the whole serialized collection.  Writes replace the
row; there is no partial update.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from parts_kernel.db.base import Base


class KeyValueEntry(Base):
    """One stored key and its serialized value."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<KeyValueEntry {self.key} ({len(self.value)} chars)>"
