"""CLI for Magic Movers administration."""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from magic_movers.core.config import load_app_config, setup_logging
from magic_movers.db.fleet_store import PostgresFleetStore, ensure_tables, open_database
from magic_movers.db.pool import close_database
from magic_movers.fleet.errors import FleetError
from magic_movers.fleet.service import FleetService

logger = logging.getLogger(__name__)


async def _init_db() -> None:
    db = await open_database()
    try:
        await ensure_tables(db)
    finally:
        await close_database()


async def _reset(movers: bool, items: bool, logs: bool) -> dict:
    db = await open_database()
    try:
        service = FleetService(PostgresFleetStore(db))
        cleared = {}
        if movers:
            cleared["movers"] = await service.clear_movers()
        if items:
            cleared["items"] = await service.clear_items()
        if logs:
            cleared["logs"] = await service.clear_logs()
        return cleared
    finally:
        await close_database()


async def _list_movers() -> list:
    db = await open_database()
    try:
        return await FleetService(PostgresFleetStore(db)).list_movers()
    finally:
        await close_database()


def cmd_init_db(args):
    """init-db command handler."""
    asyncio.run(_init_db())
    print("Tables ready: movers, items, mover_logs")


def cmd_reset(args):
    """reset command handler."""
    everything = not (args.movers or args.items or args.logs)
    cleared = asyncio.run(
        _reset(
            movers=everything or args.movers,
            items=everything or args.items,
            logs=everything or args.logs,
        )
    )
    for name, count in cleared.items():
        print(f"  {name}: {count} cleared")


def cmd_movers(args):
    """movers command handler."""
    movers = asyncio.run(_list_movers())
    if not movers:
        print("No magic movers found")
        return

    print(f"{'ID':<16} {'NAME':<20} {'STATE':<11} {'MISSIONS':>8} {'LIMIT':>8}")
    for mover in movers:
        print(
            f"{mover.id:<16} {mover.name[:20]:<20} {mover.quest_state.value:<11} "
            f"{mover.completed_missions:>8} {mover.weight_limit:>8g}"
        )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Magic Movers - fleet mission tracking",
        epilog="Commands always act on the PostgreSQL database configured by the DB_* "
        "variables or DATABASE_URI; STORE_BACKEND is not used.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(func=cmd_init_db)

    reset_parser = subparsers.add_parser(
        "reset", help="Clear PostgreSQL data (everything when no flag is given)"
    )
    reset_parser.add_argument("--movers", action="store_true", help="Clear movers")
    reset_parser.add_argument("--items", action="store_true", help="Clear items")
    reset_parser.add_argument("--logs", action="store_true", help="Clear mission logs")
    reset_parser.set_defaults(func=cmd_reset)

    movers_parser = subparsers.add_parser("movers", help="Show the mover leaderboard from PostgreSQL")
    movers_parser.set_defaults(func=cmd_movers)

    args = parser.parse_args()

    load_dotenv()
    app_config = load_app_config()
    setup_logging(app_config.log_level)
    if app_config.store_backend == "memory":
        logger.warning("STORE_BACKEND=memory is ignored by the CLI, using PostgreSQL")

    try:
        args.func(args)
    except FleetError as e:
        logger.error(e.detail)
        sys.exit(1)


if __name__ == "__main__":
    main()
