#!/usr/bin/env python
"""Recompute remaining balances for every active lot.

Each lot's remaining quantity is rebuilt from its active consumption
records, one transaction per lot. Useful after manual database edits or
an import that bypassed the ledger services.

Usage:
    python -m scripts.reconcile_lots
    python -m scripts.reconcile_lots --owner <owner_id>
    python -m scripts.reconcile_lots --dry-run
"""

import argparse

from database import get_session_local, init_db
from logging_config import setup_logging
from services.balance_reconciler import BalanceReconciler


def reconcile_lots(owner_id: str | None = None, dry_run: bool = False):
    """Reconcile all active lots and print the lots that drifted."""
    init_db()
    SessionLocal = get_session_local()
    db = SessionLocal()

    try:
        report = BalanceReconciler.reconcile_all(db, owner_id=owner_id, dry_run=dry_run)

        if dry_run:
            print("[DRY RUN] No balances were written")

        print(f"Checked {report.lots_checked} active lots")
        for drift in report.drifted:
            print(f"  {drift.lot_id}: stored {drift.stored} -> reconciled {drift.reconciled}")

        if report.over_sold:
            print(f"\nOver-sold lots (negative balance): {len(report.over_sold)}")
            for lot_id in report.over_sold:
                print(f"  - {lot_id}")

        if report.skipped:
            print(f"\nSkipped (removed during the run): {len(report.skipped)}")

        print("\nSummary:")
        print(f"  Drifted: {len(report.drifted)}")
        print(f"  Over-sold: {len(report.over_sold)}")
        return report

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        raise
    finally:
        db.close()


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Reconcile lot balances")
    parser.add_argument("--owner", default=None, help="Only reconcile this owner's lots")
    parser.add_argument(
        "--dry-run", action="store_true", help="Report drift without writing"
    )
    args = parser.parse_args(argv)
    setup_logging()
    reconcile_lots(owner_id=args.owner, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
