#!/usr/bin/env python3
"""
Retire an item with its borrowing requests, history and messages.

Usage:
  python scripts/retire_item.py --item-id 42
"""
from __future__ import annotations

import argparse
import sys

from heyneighbor.app import configure_logging
from heyneighbor.core.config import get_settings
from heyneighbor.db.session import Database
from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import ServiceError
from heyneighbor.services.retirement_service import RetirementCoordinator


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Retire an item and its dependent records")
    ap.add_argument("--item-id", type=int, required=True, help="Item id to retire")
    args = ap.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    database = Database(settings.database_url)
    repository = SQLRepository(database)
    try:
        before = repository.count_rows()
        result = RetirementCoordinator(repository).retire_item(args.item_id)
        after = repository.count_rows()
    except ServiceError as exc:
        sys.stderr.write(f"Error ({exc.code}): {exc.message}\n")
        return 1
    finally:
        database.dispose()

    print("OK: item retired")
    print(f"  Item: {result.item_id}")
    print(f"  Borrowing history removed: {result.history_deleted}")
    print(f"  Borrowing requests removed: {result.requests_deleted}")
    print(f"  Messages removed: {result.messages_deleted}")
    print("  Rows per table (before -> after):")
    for table, count in before.items():
        print(f"    {table}: {count} -> {after[table]}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
