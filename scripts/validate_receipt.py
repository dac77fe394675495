# scripts/validate_receipt.py
# Validate one or more run receipts against the LOCAL receipt schema (no network).
# Exit policy:
#   default: exit 1 if any receipt fails the schema
#   --warnings-as-errors: receipts with status "error" also cause nonzero
from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import List

# Make repo root importable
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from sandworm.receipts import receipt_errors  # noqa: E402


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("receipts", nargs="+", help="Receipt JSON file(s)")
    ap.add_argument("--warnings-as-errors", action="store_true", help="treat error-status receipts as failures")
    args = ap.parse_args(argv)

    failed = False
    for name in args.receipts:
        path = Path(name)
        try:
            receipt = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            print(f"[ERROR] {path}: cannot read receipt: {e}")
            failed = True
            continue

        errors = receipt_errors(receipt)
        warnings = []
        if receipt.get("status") == "error":
            warnings.append(f"run ended in error: {receipt.get('reason')}")

        if errors:
            print(f"[FAIL] {path}")
            for e in errors:
                print("  -", e)
            failed = True
        else:
            print(f"[OK] {path}")
        for w in warnings:
            print("  -", w)
        if warnings and args.warnings_as_errors:
            failed = True

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
