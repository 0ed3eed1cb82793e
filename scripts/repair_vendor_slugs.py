"""Find and fix malformed vendor page slugs.

    python scripts/repair_vendor_slugs.py --dry-run
    python scripts/repair_vendor_slugs.py
"""

import argparse
import sys
from pathlib import Path

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from portal.database import SessionLocal, init_db
from portal.vendors import repair_vendor_slugs


def main():
    parser = argparse.ArgumentParser(description="Repair vendor directory slugs")
    parser.add_argument("--dry-run", action="store_true", help="Report repairs without applying them")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        report = repair_vendor_slugs(db, dry_run=args.dry_run)
    finally:
        db.close()

    print(f"Checked {report.checked} vendor pages")
    if not report.repairs:
        print("All vendor slugs look good")
        return

    for repair in report.repairs:
        if repair.applied:
            status = "FIXED"
        elif repair.reason:
            status = "SKIPPED"
        else:
            status = "WOULD FIX"
        line = f"  [{status}] #{repair.page_id}: {repair.old_slug} -> {repair.new_slug}"
        if repair.reason:
            line += f" ({repair.reason})"
        print(line)

    if args.dry_run:
        print("\nDry run: no changes written. Re-run without --dry-run to apply.")


if __name__ == "__main__":
    main()
