#!/usr/bin/env python3
"""
Audit every debt record for inconsistencies.

Usage:
    python verify_debts.py          (report only)
    python verify_debts.py --fix    (repair what can be derived from amount_paid)
"""
import argparse
import sys

from backoffice.core.database import SessionLocal
from backoffice.core.logging_config import configure_logging
from backoffice.services.reconciliation import fix_debts, verify_debts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Verify debt ledger consistency")
    parser.add_argument("--fix", action="store_true", help="repair amount due, status and sale mirror")
    args = parser.parse_args(argv)

    configure_logging()
    db = SessionLocal()
    try:
        findings = verify_debts(db)
        if not findings:
            print("All debt calculations are correct. No issues found.")
            return 0

        print(f"Found {len(findings)} issue(s):")
        print("=" * 100)
        for f in findings:
            print(
                f"Debt {f['debt_id']} | Receipt {f['receipt_number']} | {f['customer_name']} | "
                f"{f['kind']}: recorded {f['recorded']}, expected {f['expected']}"
            )
        print("=" * 100)

        if args.fix:
            repaired = fix_debts(db, findings)
            print(f"Repaired {len(repaired)} debt(s).")
            remaining = verify_debts(db)
            if remaining:
                print(f"{len(remaining)} issue(s) need manual review.")
                return 1
            return 0

        print("To repair these inconsistencies, run: python verify_debts.py --fix")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
