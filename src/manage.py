"""Bakery database management CLI.

Creates or drops the tables of every SQL provider configured for the
bakery domain. The default memory provider needs neither.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from bakery.domain import bakery
    from bakery.utils.db import setup_db

    print("Initializing bakery domain...")
    bakery.init()
    print("Creating bakery database schema...")
    setup_db(bakery)
    print("Done.")


def drop_database():
    from bakery.domain import bakery
    from bakery.utils.db import drop_db

    print("Initializing bakery domain...")
    bakery.init()
    print("Dropping bakery database schema...")
    drop_db(bakery)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Bakery database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
