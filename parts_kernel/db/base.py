"""
Module: parts_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy ORM models.
Architecture position: Kernel > DB.  Lowest-level import target within the
    storage backend.  MUST NOT import from models/, services/ or domain/.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }
