"""Storefront management CLI.

Provides commands to create and drop the relational schema and to run the
operator stock-restore tool for a cancelled order.

Usage:
    python src/manage.py setup-db                  # Create all tables
    python src/manage.py drop-db                   # Drop all tables
    python src/manage.py restore-stock <order_id>  # Return a cancelled order's items to stock
"""

import argparse
import sys


def _ordering():
    from ordering.domain import ordering

    ordering.init()
    return ordering


def setup_databases():
    """Create database schemas for every SQL provider."""
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    domain = _ordering()
    print("Creating database schema...")
    touched = setup_db(domain)
    if not touched:
        print("  No SQL providers configured; nothing to create.")
    for name in touched:
        print(f"  {name} schema ready.")
    print("Done.")


def drop_databases():
    """Drop database schemas for every SQL provider."""
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    domain = _ordering()
    print("Dropping database schema...")
    for name in drop_db(domain):
        print(f"  {name} schema dropped.")
    print("Done.")


def restore_stock(order_id: str):
    from ordering.order.cancellation import RestoreOrderStock

    domain = _ordering()
    with domain.domain_context():
        domain.process(RestoreOrderStock(order_id=order_id), asynchronous=False)
    print(f"Stock restored for order {order_id}.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    restore_parser = subparsers.add_parser("restore-stock", help="Return a cancelled order's items to stock")
    restore_parser.add_argument("order_id")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "restore-stock":
        restore_stock(args.order_id)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
