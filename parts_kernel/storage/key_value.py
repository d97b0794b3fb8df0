"""
Key-value storage backends.

Responsibility:
    Durable string storage under stable keys.  The persistence adapter
    stores each whole collection as one JSON value; backends know nothing
    about parts or transactions.

Backends:
    - ``InMemoryKeyValueStore``: a dict; for tests and throwaway sessions.
    - ``SqlKeyValueStore``: one ``kv_entries`` table via SQLAlchemy
      (SQLite by default).

Failure modes:
    - StorageUnavailableError wraps any backend failure on read or write.
"""

from __future__ import annotations

import threading
from typing import Mapping, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from parts_kernel.db.engine import session_scope
from parts_kernel.domain.clock import Clock, SystemClock
from parts_kernel.exceptions import StorageUnavailableError
from parts_kernel.logging_config import get_logger
from parts_kernel.models.kv_entry import KeyValueEntry

logger = get_logger("storage.key_value")


class KeyValueStore(Protocol):
    """Pluggable interface for durable string storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def set_many(self, items: Mapping[str, str]) -> None:
        """Store every pair in ``items`` together, or none of them."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        ...

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        ...


class InMemoryKeyValueStore:
    """Dict-backed store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def set_many(self, items: Mapping[str, str]) -> None:
        with self._lock:
            self._data.update(items)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SqlKeyValueStore:
    """SQLAlchemy-backed store: one row per key in ``kv_entries``."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def get(self, key: str) -> str | None:
        try:
            with session_scope(self._session_factory) as session:
                return session.execute(
                    select(KeyValueEntry.value).where(KeyValueEntry.key == key)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(key, "read", str(exc)) from exc

    def set(self, key: str, value: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.merge(
                    KeyValueEntry(key=key, value=value, updated_at=self._clock.now())
                )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(key, "write", str(exc)) from exc
        logger.debug("kv_written", extra={"key": key, "size": len(value)})

    def set_many(self, items: Mapping[str, str]) -> None:
        """Write every key in one session so a failure leaves none of them."""
        now = self._clock.now()
        try:
            with session_scope(self._session_factory) as session:
                for key, value in items.items():
                    session.merge(KeyValueEntry(key=key, value=value, updated_at=now))
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(",".join(items), "write", str(exc)) from exc
        logger.debug("kv_written", extra={"keys": sorted(items)})

    def delete(self, key: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        except SQLAlchemyError as exc:
            raise StorageUnavailableError(key, "delete", str(exc)) from exc

    def keys(self) -> list[str]:
        try:
            with session_scope(self._session_factory) as session:
                return list(
                    session.execute(
                        select(KeyValueEntry.key).order_by(KeyValueEntry.key)
                    ).scalars()
                )
        except SQLAlchemyError as exc:
            raise StorageUnavailableError("*", "read", str(exc)) from exc
