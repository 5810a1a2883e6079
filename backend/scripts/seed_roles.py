"""CLI script to upsert the workspace and board role registry into the database."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed the roles table from the static permission registry.",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Apply migrations (or create tables) before seeding",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the rows that would be written without touching the database",
    )
    return parser.parse_args()


async def _run() -> int:
    from trellone.core.logging import configure_logging
    from trellone.db.session import init_db, session_scope
    from trellone.services.permissions import registry_rows
    from trellone.services.roles import seed_roles

    args = _parse_args()
    configure_logging()

    if args.dry_run:
        for name, level, permissions in registry_rows():
            sys.stdout.write(f"{level.value}:{name} permissions={','.join(permissions)}\n")
        return 0

    if args.init_db:
        await init_db()
    async with session_scope() as session:
        created, updated = await seed_roles(session)

    sys.stdout.write(f"roles_created={created} roles_updated={updated}\n")
    return 0


def main() -> None:
    """Run the async CLI workflow and exit with its return code."""
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
