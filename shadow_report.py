#!/usr/bin/env python3
"""
Report shadow tables and optionally load cold structures back into the cache.

Usage:
    python shadow_report.py              # List shadow tables and cache presence
    python shadow_report.py --rehydrate  # Load structures missing from the cache
    python shadow_report.py --debug      # Log SQL (otherwise SHADOW_LOG_LEVEL, default INFO)
"""

import asyncio
import sys

from loguru import logger

from kvshadow import ShadowClient
from kvshadow.models import TableInventory
from settings.logging import setup_logging


def print_report(entries: list[TableInventory]) -> None:
    print("\n" + "=" * 60)
    print("SHADOW INVENTORY")
    print("=" * 60)

    if not entries:
        print("\nNo shadow tables found.\n")
        return

    for entry in entries:
        status = "-" if entry.cached is None else ("cached" if entry.cached else "cold")
        print(f"  {entry.table:<30} {entry.kind:<10} {entry.rows:>8,} rows  {status}")

    cold = sum(1 for e in entries if e.cached is False)
    print("\n" + "=" * 60)
    print(f"{len(entries)} tables, {cold} cold")
    print("=" * 60 + "\n")


async def run(rehydrate: bool) -> None:
    async with ShadowClient.connect() as client:
        entries = await client.inventory()
        print_report(entries)

        if not rehydrate:
            return

        loaded = 0
        for entry in entries:
            if entry.cached is False:
                loaded += await client.exists(entry.key)
        await client.drain()
        logger.info("Rehydrated {} structures", loaded)


def main():
    args = sys.argv[1:]
    unknown = [a for a in args if a not in ("--rehydrate", "--debug")]
    if unknown:
        print(__doc__)
        sys.exit(1)

    setup_logging(level="DEBUG" if "--debug" in args else None, to_file=True)
    asyncio.run(run(rehydrate="--rehydrate" in args))


if __name__ == "__main__":
    main()
