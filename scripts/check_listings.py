"""Run the listing expiration sweep.

Meant for a daily cron job:

    python scripts/check_listings.py
    python scripts/check_listings.py --expiring-within 3
    python scripts/check_listings.py --reference-date 2025-03-01
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from portal.database import SessionLocal, init_db
from portal.listings import check_expired_listings, listings_expiring_within
from portal.schemas import to_naive_utc


def parse_date(value: str) -> datetime:
    try:
        return to_naive_utc(datetime.fromisoformat(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an ISO date: {value}")


def main():
    parser = argparse.ArgumentParser(description="Expire, renew and purge classified listings")
    parser.add_argument("--reference-date", type=parse_date,
                        help="Treat this ISO date/time as 'now' (default: current UTC time)")
    parser.add_argument("--expiring-within", type=int, metavar="DAYS",
                        help="Also list active listings expiring within DAYS days")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        result = check_expired_listings(db, args.reference_date)
        print(f"Checked {result.checked} listings past their expiration date")
        print(f"  Renewed subscriptions: {result.renewed}")
        print(f"  Marked expired:        {result.expired}")
        print(f"  Deleted (>30 days):    {result.deleted}")

        if args.expiring_within:
            expiring = listings_expiring_within(db, args.expiring_within, args.reference_date)
            print(f"\n{len(expiring)} listings expire within {args.expiring_within} days:")
            for listing in expiring:
                print(f"  #{listing.id:<6} {listing.expiration_date:%Y-%m-%d %H:%M}  {listing.title}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
