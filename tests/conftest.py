"""
Pytest fixtures for the parts kernel test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- A DeterministicClock and the standard actors
- Store / engine / service wiring over an in-memory key-value store
- An in-memory SQLite session factory for the SQL-backed store

No test needs a running database server.
"""

import json
import logging
from datetime import UTC, datetime
from io import StringIO

import pytest

from parts_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from parts_kernel.domain.actors import Actor, ActorRole
from parts_kernel.domain.clock import DeterministicClock
from parts_kernel.domain.parts import Part
from parts_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from parts_kernel.services.approval_engine import ApprovalEngine
from parts_kernel.services.inventory_service import InventoryService
from parts_kernel.services.inventory_store import InventoryStore
from parts_kernel.storage.key_value import InMemoryKeyValueStore
from parts_kernel.storage.persistence import PersistenceAdapter

AREA_IDS = ("A1", "A2", "B1", "B2", "C1", "C2")

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


def make_part(
    part_id: str = "P001",
    *,
    name: str = "Electro-Pneumatic Positioner",
    model: str = "EP-1000-Smart",
    spec: str = "4-20mA Input, Double Acting, Explosion Proof",
    area: str = "A1",
    quantity: int = 5,
    min_level: int = 2,
    image_url: str = "",
    last_updated: datetime = FIXED_NOW,
) -> Part:
    return Part(
        id=part_id,
        name=name,
        model=model,
        spec=spec,
        area=area,
        quantity=quantity,
        min_level=min_level,
        image_url=image_url,
        last_updated=last_updated,
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture parts_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.submit(...)
            logs = captured_logs()
            assert any(r["message"] == "transaction_submitted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("parts_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def admin():
    return Actor(id="u1", name="Admin", can_decide=True, role=ActorRole.ADMIN)


@pytest.fixture
def approver():
    return Actor(id="u2", name="KraiwitN", can_decide=True, role=ActorRole.APPROVER)


@pytest.fixture
def operator():
    return Actor(id="u3", name="SaicholS", can_decide=False, role=ActorRole.OPERATOR)


@pytest.fixture
def seed_parts():
    return (
        make_part("P001", quantity=5, min_level=2),
        make_part(
            "P002",
            name="Solenoid Valve 24VDC",
            model="SV-3/2-WAY",
            spec='3/2 Way, 1/4" NPT, Brass Body',
            area="A2",
            quantity=15,
            min_level=8,
        ),
    )


# =============================================================================
# Service wiring
# =============================================================================


@pytest.fixture
def store(seed_parts, clock):
    return InventoryStore(parts=seed_parts, clock=clock)


@pytest.fixture
def engine(store):
    return ApprovalEngine(store, area_ids=AREA_IDS)


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def persistence(kv_store, clock):
    return PersistenceAdapter(kv_store, clock=clock)


@pytest.fixture
def service(store, persistence, engine, seed_parts):
    return InventoryService(store, persistence, engine=engine, seed_parts=seed_parts)


@pytest.fixture
def sql_session_factory():
    """In-memory SQLite with the kv_entries table created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    reset_engine()
