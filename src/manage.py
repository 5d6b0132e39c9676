"""Storefront database management CLI.

Usage:
    python src/manage.py setup-db                    # Create all tables
    python src/manage.py drop-db --domain ordering   # Drop one domain's tables
"""

import argparse
import sys

from server import DOMAIN_NAMES, load_domain
from shared.db import drop_db, setup_db


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    for name in domains or DOMAIN_NAMES:
        print(f"Creating {name} database schema...")
        setup_db(load_domain(name))
        print(f"  {name} schema ready.")
    print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    for name in domains or DOMAIN_NAMES:
        print(f"Dropping {name} database schema...")
        drop_db(load_domain(name))
        print(f"  {name} schema dropped.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("setup-db", "Create all database tables"), ("drop-db", "Drop all database tables")):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument(
            "--domain",
            choices=DOMAIN_NAMES,
            nargs="*",
            help="Specific domain(s) to target (default: all)",
        )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
