"""
Record codec for persisted parts and transactions.

Stored records use camelCase keys (``minLevel``, ``imageUrl``,
``lastUpdated``, ``partId``, ``approverName``, ``relatedTransactionId``,
``partData``) and ISO-8601 timestamps.  Optional fields that are unset are
omitted rather than written as null.

Encoding is canonical (sorted keys, no whitespace) so the same state
always produces the same bytes.

Decoding raises ``KeyError`` for a missing required field and
``ValueError`` for a malformed one; the persistence adapter wraps both in
``SerializationError`` with the storage key.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from parts_kernel.domain.parts import Part
from parts_kernel.domain.transactions import (
    NO_PAYLOAD,
    CandidatePart,
    FieldUpdates,
    Transaction,
    TransactionPayload,
    TransactionStatus,
    TransactionType,
)

# Python attribute -> stored key
PART_KEYS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "model": "model",
    "spec": "spec",
    "area": "area",
    "quantity": "quantity",
    "min_level": "minLevel",
    "image_url": "imageUrl",
    "last_updated": "lastUpdated",
}
_PART_ATTRS = {v: k for k, v in PART_KEYS.items()}


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be an ISO string, got {value!r}")
    return datetime.fromisoformat(value)


def _parse_count(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != int(value):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


# =========================================================================
# Parts
# =========================================================================


def part_to_record(part: Part) -> dict[str, Any]:
    return {
        "id": part.id,
        "name": part.name,
        "model": part.model,
        "spec": part.spec,
        "area": part.area,
        "quantity": part.quantity,
        "minLevel": part.min_level,
        "imageUrl": part.image_url,
        "lastUpdated": part.last_updated.isoformat(),
    }


def part_from_record(record: dict[str, Any]) -> Part:
    return Part(
        id=str(record["id"]),
        name=str(record["name"]),
        model=str(record["model"]),
        spec=str(record["spec"]),
        area=str(record["area"]),
        quantity=_parse_count(record["quantity"], "quantity"),
        min_level=_parse_count(record["minLevel"], "minLevel"),
        image_url=str(record.get("imageUrl", "")),
        last_updated=_parse_timestamp(record["lastUpdated"]),
    )


def updates_to_record(updates: dict[str, Any]) -> dict[str, Any]:
    return {PART_KEYS.get(k, k): v for k, v in updates.items()}


def updates_from_record(record: dict[str, Any]) -> dict[str, Any]:
    return {_PART_ATTRS.get(k, k): v for k, v in record.items()}


# =========================================================================
# Transactions
# =========================================================================


def transaction_to_record(tx: Transaction) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": tx.id,
        "partId": tx.part_id,
        "userId": tx.user_id,
        "userName": tx.user_name,
        "type": tx.type.value,
        "quantity": tx.quantity,
        "timestamp": tx.timestamp.isoformat(),
        "status": tx.status.value,
    }
    if tx.note is not None:
        record["note"] = tx.note
    if tx.approver_name is not None:
        record["approverName"] = tx.approver_name
    if tx.related_transaction_id is not None:
        record["relatedTransactionId"] = tx.related_transaction_id
    if isinstance(tx.payload, CandidatePart):
        record["partData"] = part_to_record(tx.payload.part)
    elif isinstance(tx.payload, FieldUpdates):
        record["fieldUpdates"] = updates_to_record(tx.payload.as_dict())
    return record


def _payload_from_record(record: dict[str, Any]) -> TransactionPayload:
    if record.get("partData") is not None:
        return CandidatePart(part=part_from_record(record["partData"]))
    if record.get("fieldUpdates") is not None:
        return FieldUpdates.from_mapping(updates_from_record(record["fieldUpdates"]))
    return NO_PAYLOAD


def transaction_from_record(record: dict[str, Any]) -> Transaction:
    tx_type = TransactionType(record["type"])
    payload = _payload_from_record(record)
    # A completed CREATE written by older clients may still carry partData.
    if tx_type != TransactionType.CREATE and isinstance(payload, CandidatePart):
        payload = NO_PAYLOAD
    return Transaction(
        id=str(record["id"]),
        part_id=str(record["partId"]),
        user_id=str(record["userId"]),
        user_name=str(record["userName"]),
        type=tx_type,
        quantity=_parse_count(record["quantity"], "quantity"),
        timestamp=_parse_timestamp(record["timestamp"]),
        status=TransactionStatus(record["status"]),
        note=record.get("note"),
        approver_name=record.get("approverName"),
        related_transaction_id=record.get("relatedTransactionId"),
        payload=payload,
    )


# =========================================================================
# JSON
# =========================================================================


def dumps(data: Any) -> str:
    """Canonical JSON: sorted keys, no whitespace."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def loads(text: str) -> Any:
    return json.loads(text)
