#!/usr/bin/env python3
"""
Spare-parts stock tool -- run kernel operations against a SQLite store.

Usage:
    python -m scripts.stock_cli parts
    python -m scripts.stock_cli pending
    python -m scripts.stock_cli history [--part P001]
    python -m scripts.stock_cli submit --user u3 --type OUT --part P001 --qty 3
    python -m scripts.stock_cli decide --user u2 --tx TX-000001 --decision APPROVED
    python -m scripts.stock_cli snapshot save
    python -m scripts.stock_cli reset

Examples:
    # Propose a new part (pending until a decider approves it)
    python -m scripts.stock_cli submit --user u3 --type CREATE --part P007 \\
        --name "Limit Switch" --model LS-20 --spec "IP67" --area C1 --min-level 1

    # Change fields directly
    python -m scripts.stock_cli submit --user u1 --type UPDATE --part P001 \\
        --set min_level=3 --set spec="4-20mA, HART"

    # Custom database URL
    python -m scripts.stock_cli --db sqlite:////tmp/parts.db parts
"""

import argparse
import logging
import sys
from pathlib import Path

from parts_config import get_active_config
from parts_config.bridges import build_actor, build_inventory_service, build_storage_areas
from parts_kernel.db.engine import (
    DEFAULT_DATABASE_URL,
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from parts_kernel.domain.actions import SubmitAction
from parts_kernel.domain.parts import Part
from parts_kernel.domain.transactions import Transaction, TransactionType
from parts_kernel.exceptions import PartsKernelError
from parts_kernel.logging_config import configure_logging
from parts_kernel.selectors.inventory_selector import InventorySelector
from parts_kernel.storage.key_value import SqlKeyValueStore

W = 80
_INT_FIELDS = ("quantity", "min_level")


# =============================================================================
# Formatting
# =============================================================================


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def print_parts(parts) -> None:
    print(f"  {'ID':<8} {'NAME':<30} {'AREA':<5} {'QTY':>5} {'MIN':>5}")
    print(f"  {'-' * 8} {'-' * 30} {'-' * 5} {'-' * 5} {'-' * 5}")
    for p in parts:
        flag = "  LOW" if p.is_low_stock else ""
        print(f"  {p.id:<8} {p.name[:30]:<30} {p.area:<5} {p.quantity:>5} {p.min_level:>5}{flag}")


def print_transactions(transactions) -> None:
    print(f"  {'ID':<11} {'TYPE':<9} {'PART':<8} {'QTY':>5} {'STATUS':<10} {'BY':<12} NOTE")
    print(f"  {'-' * 11} {'-' * 9} {'-' * 8} {'-' * 5} {'-' * 10} {'-' * 12} ----")
    for t in transactions:
        by = t.approver_name or t.user_name
        print(
            f"  {t.id:<11} {t.type.value:<9} {t.part_id:<8} {t.quantity:>5} "
            f"{t.status.value:<10} {by[:12]:<12} {t.note or ''}"
        )


# =============================================================================
# Argument handling
# =============================================================================


def _parse_updates(pairs: list[str]) -> dict:
    updates = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"--set expects field=value, got {pair!r}")
        key = key.strip()
        updates[key] = int(value) if key in _INT_FIELDS else value
    return updates


def _build_action(args, actor, now) -> SubmitAction:
    tx_type = TransactionType(args.type.upper())
    new_part = None
    if tx_type == TransactionType.CREATE:
        new_part = Part(
            id=args.part,
            name=args.name or "",
            model=args.model or "",
            spec=args.spec or "",
            area=args.area or "",
            quantity=args.qty,
            min_level=args.min_level,
            image_url=args.image_url or "",
            last_updated=now,
        )
    return SubmitAction(
        part_id=args.part,
        actor=actor,
        type=tx_type,
        quantity=args.qty,
        new_part=new_part,
        updates=_parse_updates(args.set or []),
        note=args.note,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run spare-parts stock operations.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db", type=str, default=DEFAULT_DATABASE_URL,
        help=f"Database URL (default: {DEFAULT_DATABASE_URL})",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Inventory YAML (default: bundled defaults)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log kernel events to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("parts", help="List parts")
    sub.add_parser("pending", help="List pending transactions")
    sub.add_parser("areas", help="Units per storage area")

    history = sub.add_parser("history", help="List transactions, newest first")
    history.add_argument("--part", type=str, default=None)

    submit = sub.add_parser("submit", help="Submit an action")
    submit.add_argument("--user", required=True)
    submit.add_argument("--type", required=True, choices=["IN", "OUT", "CREATE", "UPDATE", "DELETE"])
    submit.add_argument("--part", required=True)
    submit.add_argument("--qty", type=int, default=0)
    submit.add_argument("--note", type=str, default=None)
    submit.add_argument("--name")
    submit.add_argument("--model")
    submit.add_argument("--spec")
    submit.add_argument("--area")
    submit.add_argument("--min-level", type=int, default=0)
    submit.add_argument("--image-url")
    submit.add_argument("--set", action="append", metavar="FIELD=VALUE")

    decide = sub.add_parser("decide", help="Approve or reject a pending transaction")
    decide.add_argument("--user", required=True)
    decide.add_argument("--tx", required=True)
    decide.add_argument("--decision", required=True, choices=["APPROVED", "REJECTED"])

    snapshot = sub.add_parser("snapshot", help="Save or restore the manual snapshot")
    snapshot.add_argument("action", choices=["save", "restore"])

    sub.add_parser("reset", help="Restore factory parts and clear all transactions")
    return parser


# =============================================================================
# Main
# =============================================================================


def run(args, service, config) -> int:
    selector = InventorySelector(service.store)

    if args.command == "parts":
        banner("PARTS")
        print_parts(service.get_parts())
        return 0

    if args.command == "pending":
        banner(f"PENDING ({selector.pending_count()})")
        print_transactions(selector.pending_transactions())
        return 0

    if args.command == "areas":
        banner("STOCK BY AREA")
        for row in selector.stock_by_area(build_storage_areas(config)):
            print(f"  {row.area_id:<4} {row.area_name:<16} {row.part_count:>3} parts {row.units:>6} units")
        return 0

    if args.command == "history":
        banner("HISTORY")
        if args.part:
            print_transactions(selector.history_for_part(args.part))
        else:
            print_transactions(service.get_transactions())
        return 0

    if args.command in ("submit", "decide"):
        user = config.user(args.user)
        if user is None:
            print(f"  ERROR: Unknown user: {args.user}", file=sys.stderr)
            return 1
        actor = build_actor(user)

        if args.command == "submit":
            result = service.submit(_build_action(args, actor, service.store.clock.now()))
            tx: Transaction = service.get_transaction(result.transaction_id)
            print(f"  {tx.id} {tx.type.value} {tx.part_id} -> {tx.status.value}")
        else:
            result = service.decide(args.tx, args.decision, actor)
            if not result.changed:
                print(f"  {args.tx}: no change")
            else:
                print(f"  {args.tx} -> {args.decision} (audit {result.transaction_id})")
        if not result.persisted and result.persistence_error:
            print(f"  WARNING: not saved: {result.persistence_error}", file=sys.stderr)
        return 0

    if args.command == "snapshot":
        if args.action == "save":
            snap = service.save_snapshot()
            print(f"  Snapshot saved at {snap.saved_at.isoformat()}")
        else:
            saved_at = service.restore_snapshot()
            print(f"  Restored snapshot from {saved_at.isoformat()}")
        return 0

    if args.command == "reset":
        service.reset()
        print(f"  Reset to {len(service.get_parts())} factory parts")
        return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        config = get_active_config(args.config)
        init_engine_from_url(args.db)
        create_tables()
        service = build_inventory_service(config, SqlKeyValueStore(get_session_factory()))
        return run(args, service, config)
    except (PartsKernelError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        reset_engine()


if __name__ == "__main__":
    sys.exit(main())
