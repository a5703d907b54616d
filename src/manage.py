"""TourBook Reviews management CLI.

Usage:
    python src/manage.py setup-db            # Create all tables
    python src/manage.py drop-db             # Drop all tables
    python src/manage.py reconcile-ratings   # Rebuild rating statistics
    python src/manage.py reconcile-ratings --target-type hotel --target-id h-1
"""

import argparse
import sys


def setup_databases():
    """Create the reviews database schema."""
    from reviews.domain import reviews
    from reviews.utils.db import setup_db

    print("Initializing reviews domain...")
    reviews.init()
    print("Creating reviews database schema...")
    setup_db(reviews)
    print("Done.")


def drop_databases():
    """Drop the reviews database schema."""
    from reviews.domain import reviews
    from reviews.utils.db import drop_db

    print("Initializing reviews domain...")
    reviews.init()
    print("Dropping reviews database schema...")
    drop_db(reviews)
    print("Done.")


def reconcile_ratings(target_type=None, target_id=None):
    """Recompute stored rating statistics from the active reviews."""
    from reviews.domain import reviews
    from reviews.rating.reconciliation import ReconcileTargetRatings

    reviews.init()
    with reviews.domain_context():
        corrected = reviews.process(
            ReconcileTargetRatings(target_type=target_type, target_id=target_id),
            asynchronous=False,
        )
    print(f"Corrected {corrected} rating record(s).")
    return corrected


def main():
    parser = argparse.ArgumentParser(description="TourBook Reviews management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    reconcile_parser = subparsers.add_parser("reconcile-ratings", help="Rebuild rating statistics from reviews")
    reconcile_parser.add_argument("--target-type", help="Limit to one target (needs --target-id)")
    reconcile_parser.add_argument("--target-id", help="Limit to one target (needs --target-type)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "reconcile-ratings":
        reconcile_ratings(args.target_type, args.target_id)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
