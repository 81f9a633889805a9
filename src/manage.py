"""Storefront management CLI.

Provides commands to create and drop the database schema, and to retire
carts that have outlived their time-to-live.

Usage:
    python src/manage.py setup-db       # Create all tables
    python src/manage.py drop-db        # Drop all tables
    python src/manage.py purge-carts    # Expire carts past their TTL
"""

import argparse
import sys


def setup_database():
    """Create the database schema for the ordering domain."""
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    setup_db(ordering)
    print("Done.")


def drop_database():
    """Drop the database schema for the ordering domain."""
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    drop_db(ordering)
    print("Done.")


def purge_carts(batch_size=500):
    """Expire active carts whose time-to-live has elapsed, one batch at a time."""
    from ordering.cart.management import PurgeExpiredCarts
    from ordering.domain import ordering

    ordering.init()
    total = 0
    with ordering.domain_context():
        while True:
            purged = ordering.process(PurgeExpiredCarts(batch_size=batch_size), asynchronous=False)
            total += purged
            if purged < batch_size:
                break

    print(f"Expired {total} cart(s).")
    return total


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    purge_parser = subparsers.add_parser("purge-carts", help="Expire carts past their time-to-live")
    purge_parser.add_argument(
        "--batch-size",
        type=int,
        default=500,
        help="Carts expired per unit of work (default: 500)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "purge-carts":
        purge_carts(args.batch_size)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
