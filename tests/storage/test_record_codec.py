"""
Tests for the stored record format (``parts_kernel.storage.codec``).

Stored records use camelCase keys, ISO timestamps, omit unset optional
fields, and encode canonically.
"""

import json

import pytest

from parts_kernel.domain.transactions import (
    NO_PAYLOAD,
    CandidatePart,
    FieldUpdates,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from parts_kernel.storage import codec
from tests.conftest import FIXED_NOW, make_part


def make_tx(**kwargs):
    defaults = dict(
        id="TX-000001",
        part_id="P001",
        user_id="u3",
        user_name="SaicholS",
        type=TransactionType.OUT,
        quantity=3,
        timestamp=FIXED_NOW,
        status=TransactionStatus.PENDING,
    )
    defaults.update(kwargs)
    return Transaction(**defaults)


class TestPartRecords:
    def test_camel_case_keys(self):
        record = codec.part_to_record(make_part(image_url="https://picsum.photos/200/200?random=101"))

        assert record["minLevel"] == 2
        assert record["imageUrl"] == "https://picsum.photos/200/200?random=101"
        assert record["lastUpdated"] == FIXED_NOW.isoformat()
        assert "min_level" not in record

    def test_decode(self):
        part = make_part()
        assert codec.part_from_record(codec.part_to_record(part)) == part

    def test_missing_image_url_defaults_blank(self):
        record = codec.part_to_record(make_part())
        del record["imageUrl"]
        assert codec.part_from_record(record).image_url == ""

    def test_missing_required_key(self):
        record = codec.part_to_record(make_part())
        del record["minLevel"]
        with pytest.raises(KeyError):
            codec.part_from_record(record)

    @pytest.mark.parametrize("bad", ["5", 2.5, True, None])
    def test_malformed_quantity(self, bad):
        record = codec.part_to_record(make_part())
        record["quantity"] = bad
        with pytest.raises(ValueError):
            codec.part_from_record(record)

    def test_integral_float_accepted(self):
        record = codec.part_to_record(make_part())
        record["quantity"] = 5.0
        assert codec.part_from_record(record).quantity == 5


class TestTransactionRecords:
    def test_optional_fields_omitted(self):
        record = codec.transaction_to_record(make_tx())

        assert set(record) == {
            "id", "partId", "userId", "userName", "type", "quantity", "timestamp", "status",
        }

    def test_decided_audit_fields(self):
        record = codec.transaction_to_record(
            make_tx(
                id="LOG-000002",
                type=TransactionType.APPROVAL,
                quantity=0,
                status=TransactionStatus.COMPLETED,
                note="APPROVED transaction TX-000001 (OUT)",
                approver_name=None,
                related_transaction_id="TX-000001",
            )
        )
        assert record["relatedTransactionId"] == "TX-000001"
        assert record["note"] == "APPROVED transaction TX-000001 (OUT)"
        assert "approverName" not in record

    def test_pending_create_carries_part_data(self):
        candidate = make_part("P007")
        tx = make_tx(type=TransactionType.CREATE, quantity=5, payload=CandidatePart(candidate))

        record = codec.transaction_to_record(tx)

        assert record["partData"]["id"] == "P007"
        assert codec.transaction_from_record(record).candidate_part == candidate

    def test_field_updates_stored_camel_case(self):
        tx = make_tx(
            type=TransactionType.UPDATE,
            quantity=0,
            payload=FieldUpdates.from_mapping({"min_level": 4}),
        )

        record = codec.transaction_to_record(tx)

        assert record["fieldUpdates"] == {"minLevel": 4}
        assert codec.transaction_from_record(record).payload.as_dict() == {"min_level": 4}

    def test_part_data_on_non_create_dropped(self):
        record = codec.transaction_to_record(make_tx())
        record["partData"] = codec.part_to_record(make_part())

        assert codec.transaction_from_record(record).payload == NO_PAYLOAD

    def test_foreign_ids_accepted(self):
        record = codec.transaction_to_record(make_tx(id="TX-1700000000000"))
        assert codec.transaction_from_record(record).id == "TX-1700000000000"

    def test_unknown_type_rejected(self):
        record = codec.transaction_to_record(make_tx())
        record["type"] = "TRANSFER"
        with pytest.raises(ValueError):
            codec.transaction_from_record(record)


class TestJson:
    def test_canonical(self):
        assert codec.dumps({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_loads(self):
        assert codec.loads('{"a": 1}') == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(json.JSONDecodeError):
            codec.loads("{nope")
