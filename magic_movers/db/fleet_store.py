"""PostgreSQL implementation of the fleet repositories."""

import asyncio
import json
import logging
from contextlib import contextmanager
from typing import List, Optional, Sequence

import asyncpg

from magic_movers.db.pool import Database, init_database
from magic_movers.fleet.errors import StoreFailure
from magic_movers.fleet.models import Item, LogAction, LogEntry, Mover, QuestState
from magic_movers.fleet.store import (
    FleetStore,
    ItemRepository,
    LogRepository,
    MoverRepository,
)

logger = logging.getLogger(__name__)


async def ensure_tables(db: Database) -> None:
    """Create the movers, items and mover_logs tables if missing."""
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS movers (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            weight_limit DOUBLE PRECISION NOT NULL CHECK (weight_limit > 0),
            quest_state TEXT NOT NULL DEFAULT 'resting'
                CHECK (quest_state IN ('resting', 'loading', 'on-mission')),
            completed_missions INT NOT NULL DEFAULT 0 CHECK (completed_missions >= 0),
            items JSONB NOT NULL DEFAULT '[]',
            version INT NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
        """
    )
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS items (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            weight DOUBLE PRECISION NOT NULL CHECK (weight > 0),
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
        """
    )
    # No foreign key to movers: clearing movers keeps their history.
    await db.execute(
        """
        CREATE TABLE IF NOT EXISTS mover_logs (
            seq BIGSERIAL PRIMARY KEY,
            id TEXT UNIQUE NOT NULL,
            mover_id TEXT NOT NULL,
            item_ids JSONB NOT NULL DEFAULT '[]',
            action TEXT NOT NULL
                CHECK (action IN ('loading', 'starting mission', 'ending mission')),
            timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_mover_logs_timestamp ON mover_logs(timestamp DESC)"
    )
    await db.execute(
        "CREATE INDEX IF NOT EXISTS idx_movers_completed ON movers(completed_missions DESC)"
    )
    logger.info("Fleet tables ready")


@contextmanager
def _store_errors(operation: str):
    """Turn driver and network errors into StoreFailure."""
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
        logger.error(f"Store failure during {operation}: {e}")
        raise StoreFailure(operation, str(e)) from e


async def open_database() -> Database:
    """Connect the global database, reporting connection errors as StoreFailure."""
    with _store_errors("connect"):
        return await init_database()


def _json_list(value) -> List[str]:
    return value if isinstance(value, list) else json.loads(value or "[]")


def _deleted_count(status: str) -> int:
    """Parse the row count out of a 'DELETE n' status string."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


# ==================== Row converters ====================

def _row_to_mover(row) -> Mover:
    """Convert DB row to Mover object."""
    return Mover(
        id=row["id"],
        name=row["name"],
        weight_limit=row["weight_limit"],
        quest_state=QuestState(row["quest_state"]),
        completed_missions=row["completed_missions"],
        items=_json_list(row["items"]),
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_item(row) -> Item:
    """Convert DB row to Item object."""
    return Item(
        id=row["id"],
        name=row["name"],
        weight=row["weight"],
        created_at=row["created_at"],
    )


def _row_to_log(row) -> LogEntry:
    """Convert DB row to LogEntry object."""
    return LogEntry(
        id=row["id"],
        mover_id=row["mover_id"],
        item_ids=_json_list(row["item_ids"]),
        action=LogAction(row["action"]),
        timestamp=row["timestamp"],
    )


# ==================== Repositories ====================

class PostgresMovers(MoverRepository):
    def __init__(self, db: Database):
        self.db = db

    async def get(self, mover_id: str) -> Optional[Mover]:
        with _store_errors("get mover"):
            row = await self.db.fetchrow("SELECT * FROM movers WHERE id = $1", mover_id)
        return _row_to_mover(row) if row else None

    async def add(self, mover: Mover) -> None:
        with _store_errors("add mover"):
            await self.db.execute(
                """
                INSERT INTO movers (id, name, weight_limit, quest_state, completed_missions,
                                    items, version, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                """,
                mover.id, mover.name, mover.weight_limit, mover.quest_state.value,
                mover.completed_missions, json.dumps(mover.items), mover.version,
                mover.created_at, mover.updated_at,
            )

    async def list_by_completed_missions(self) -> List[Mover]:
        with _store_errors("list movers"):
            rows = await self.db.fetch(
                "SELECT * FROM movers ORDER BY completed_missions DESC, created_at ASC"
            )
        return [_row_to_mover(row) for row in rows]

    async def delete_all(self) -> int:
        with _store_errors("delete movers"):
            status = await self.db.execute("DELETE FROM movers")
        return _deleted_count(status)


class PostgresItems(ItemRepository):
    def __init__(self, db: Database):
        self.db = db

    async def add(self, item: Item) -> None:
        with _store_errors("add item"):
            await self.db.execute(
                "INSERT INTO items (id, name, weight, created_at) VALUES ($1, $2, $3, $4)",
                item.id, item.name, item.weight, item.created_at,
            )

    async def list(self) -> List[Item]:
        with _store_errors("list items"):
            rows = await self.db.fetch("SELECT * FROM items ORDER BY created_at ASC")
        return [_row_to_item(row) for row in rows]

    async def get_many(self, item_ids: Sequence[str]) -> List[Item]:
        with _store_errors("get items"):
            rows = await self.db.fetch(
                "SELECT * FROM items WHERE id = ANY($1::text[])", list(item_ids)
            )
        return [_row_to_item(row) for row in rows]

    async def delete_all(self) -> int:
        with _store_errors("delete items"):
            status = await self.db.execute("DELETE FROM items")
        return _deleted_count(status)


class PostgresLogs(LogRepository):
    def __init__(self, db: Database):
        self.db = db

    async def list_recent(self) -> List[LogEntry]:
        with _store_errors("list logs"):
            rows = await self.db.fetch(
                "SELECT * FROM mover_logs ORDER BY timestamp DESC, seq DESC"
            )
        return [_row_to_log(row) for row in rows]

    async def delete_all(self) -> int:
        with _store_errors("delete logs"):
            status = await self.db.execute("DELETE FROM mover_logs")
        return _deleted_count(status)


class PostgresFleetStore(FleetStore):
    """Fleet store backed by the asyncpg pool."""

    def __init__(self, db: Database):
        self.db = db
        self.movers = PostgresMovers(db)
        self.items = PostgresItems(db)
        self.logs = PostgresLogs(db)

    async def commit_transition(
        self,
        mover: Mover,
        expected_state: QuestState,
        expected_version: int,
        entry: LogEntry,
    ) -> bool:
        with _store_errors("commit transition"):
            async with self.db.transaction() as conn:
                status = await conn.execute(
                    """
                    UPDATE movers SET
                        name = $2,
                        weight_limit = $3,
                        quest_state = $4,
                        completed_missions = $5,
                        items = $6,
                        version = $7,
                        updated_at = $8
                    WHERE id = $1 AND quest_state = $9 AND version = $10
                    """,
                    mover.id, mover.name, mover.weight_limit, mover.quest_state.value,
                    mover.completed_missions, json.dumps(mover.items), mover.version,
                    mover.updated_at, expected_state.value, expected_version,
                )
                if status != "UPDATE 1":
                    return False

                await conn.execute(
                    """
                    INSERT INTO mover_logs (id, mover_id, item_ids, action, timestamp)
                    VALUES ($1, $2, $3, $4, $5)
                    """,
                    entry.id, entry.mover_id, json.dumps(entry.item_ids),
                    entry.action.value, entry.timestamp,
                )
        return True

    async def ping(self) -> bool:
        try:
            await self.db.fetchval("SELECT 1")
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError) as e:
            logger.warning(f"Store health check failed: {e}")
            return False
        return True
