"""
Tests for TransactionLedger -- id allocation, ordering, decisions and
filtered reads.
"""

import pytest

from parts_kernel.domain.transactions import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from parts_kernel.exceptions import (
    ImmutabilityViolationError,
    InvalidTransitionError,
    TransactionNotFoundError,
)
from parts_kernel.services.transaction_ledger import TransactionLedger, sequence_of
from tests.conftest import FIXED_NOW


def make_tx(
    tx_id,
    part_id="P001",
    tx_type=TransactionType.IN,
    status=TransactionStatus.COMPLETED,
    related=None,
):
    return Transaction(
        id=tx_id,
        part_id=part_id,
        user_id="u1",
        user_name="Admin",
        type=tx_type,
        quantity=1,
        timestamp=FIXED_NOW,
        status=status,
        related_transaction_id=related,
    )


@pytest.fixture
def ledger():
    return TransactionLedger()


class TestSequenceOf:
    @pytest.mark.parametrize(
        "tx_id, expected",
        [
            ("TX-000042", 42),
            ("LOG-000007", 7),
            ("TX-1700000000000", 1700000000000),
            ("legacy", None),
            ("TX-abc", None),
        ],
    )
    def test_parse(self, tx_id, expected):
        assert sequence_of(tx_id) == expected


class TestAllocation:
    def test_ids_prefixed_by_kind(self, ledger):
        assert ledger.allocate_id(TransactionType.OUT) == "TX-000001"
        assert ledger.allocate_id(TransactionType.APPROVAL) == "LOG-000002"
        assert ledger.allocate_id(TransactionType.CREATE) == "TX-000003"

    def test_sequence_continues_after_loaded_ids(self):
        ledger = TransactionLedger([make_tx("TX-000010"), make_tx("LOG-000004")])
        assert ledger.allocate_id(TransactionType.IN) == "TX-000011"

    def test_sequence_never_moves_back(self, ledger):
        ledger.append(make_tx("TX-000050"))
        ledger.replace_all([make_tx("TX-000002")])
        assert ledger.last_sequence == 50
        assert ledger.allocate_id(TransactionType.IN) == "TX-000051"

    def test_clear_keeps_sequence(self, ledger, captured_logs):
        ledger.append(make_tx(ledger.allocate_id(TransactionType.IN)))
        ledger.clear()

        assert len(ledger) == 0
        assert ledger.allocate_id(TransactionType.IN) == "TX-000002"
        assert any(r["message"] == "ledger_cleared" for r in captured_logs())

    def test_duplicate_id_rejected(self, ledger):
        ledger.append(make_tx("TX-000001"))
        with pytest.raises(ImmutabilityViolationError):
            ledger.append(make_tx("TX-000001"))


class TestOrdering:
    def test_list_newest_first(self, ledger):
        for tx_id in ("TX-000001", "TX-000002", "LOG-000003"):
            ledger.append(make_tx(tx_id))
        assert [t.id for t in ledger.list()] == ["LOG-000003", "TX-000002", "TX-000001"]

    def test_replace_all_takes_newest_first(self, ledger):
        ledger.replace_all([make_tx("TX-000002"), make_tx("TX-000001")])
        assert [t.id for t in ledger.list()] == ["TX-000002", "TX-000001"]


class TestDecisions:
    def test_mark_decided_in_place(self, ledger):
        ledger.append(make_tx("TX-000001", status=TransactionStatus.PENDING))
        ledger.append(make_tx("TX-000002"))

        decided = ledger.mark_decided("TX-000001", TransactionStatus.APPROVED, "KraiwitN")

        assert decided.status == TransactionStatus.APPROVED
        assert ledger.get("TX-000001").approver_name == "KraiwitN"
        assert [t.id for t in ledger.list()] == ["TX-000002", "TX-000001"]

    def test_mark_decided_unknown(self, ledger):
        with pytest.raises(TransactionNotFoundError):
            ledger.mark_decided("TX-000404", TransactionStatus.APPROVED, "Admin")

    def test_decided_entries_immutable(self, ledger):
        ledger.append(make_tx("TX-000001", status=TransactionStatus.REJECTED))
        with pytest.raises(InvalidTransitionError):
            ledger.mark_decided("TX-000001", TransactionStatus.APPROVED, "Admin")

    def test_require(self, ledger):
        with pytest.raises(TransactionNotFoundError):
            ledger.require("TX-000001")


class TestFilteredReads:
    @pytest.fixture
    def filled(self, ledger):
        ledger.append(make_tx("TX-000001", status=TransactionStatus.PENDING))
        ledger.append(make_tx("TX-000002", part_id="P002"))
        ledger.append(make_tx("TX-000003", part_id="P002", status=TransactionStatus.PENDING))
        ledger.append(
            make_tx("LOG-000004", tx_type=TransactionType.APPROVAL, related="TX-000002")
        )
        return ledger

    def test_pending(self, filled):
        assert [t.id for t in filled.pending()] == ["TX-000003", "TX-000001"]

    def test_by_status(self, filled):
        assert [t.id for t in filled.by_status(TransactionStatus.COMPLETED)] == [
            "LOG-000004",
            "TX-000002",
        ]

    def test_for_part(self, filled):
        assert [t.id for t in filled.for_part("P002")] == ["TX-000003", "TX-000002"]

    def test_related_to(self, filled):
        assert [t.id for t in filled.related_to("TX-000002")] == ["LOG-000004"]
