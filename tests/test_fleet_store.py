"""Tests for the PostgreSQL fleet store."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from magic_movers.db.fleet_store import PostgresFleetStore, ensure_tables, open_database
from magic_movers.fleet.errors import StoreFailure
from magic_movers.fleet.models import LogAction, LogEntry, Mover, QuestState

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def mover_row(**overrides):
    row = {
        "id": "MV-1",
        "name": "Atlas",
        "weight_limit": 10.0,
        "quest_state": "loading",
        "completed_missions": 2,
        "items": json.dumps(["IT-A"]),
        "version": 7,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_db():
    """Create mock database."""
    db = MagicMock()
    db.fetchrow = AsyncMock()
    db.fetch = AsyncMock()
    db.fetchval = AsyncMock()
    db.execute = AsyncMock()
    conn = MagicMock()
    conn.execute = AsyncMock()
    db.transaction.return_value.__aenter__.return_value = conn
    db.conn = conn
    return db


@pytest.fixture
def pg_store(mock_db):
    return PostgresFleetStore(mock_db)


class TestEnsureTables:
    """Tests for ensure_tables."""

    @pytest.mark.asyncio
    async def test_creates_tables(self, mock_db):
        await ensure_tables(mock_db)

        statements = " ".join(call.args[0] for call in mock_db.execute.call_args_list)
        assert "CREATE TABLE IF NOT EXISTS movers" in statements
        assert "CREATE TABLE IF NOT EXISTS items" in statements
        assert "CREATE TABLE IF NOT EXISTS mover_logs" in statements


class TestPostgresMovers:
    """Tests for mover persistence."""

    @pytest.mark.asyncio
    async def test_get_converts_row(self, pg_store, mock_db):
        mock_db.fetchrow.return_value = mover_row()

        mover = await pg_store.movers.get("MV-1")

        assert mover.quest_state == QuestState.LOADING
        assert mover.items == ["IT-A"]
        assert mover.version == 7
        assert "id = $1" in mock_db.fetchrow.call_args[0][0]

    @pytest.mark.asyncio
    async def test_get_accepts_decoded_json(self, pg_store, mock_db):
        mock_db.fetchrow.return_value = mover_row(items=["IT-A", "IT-B"])

        mover = await pg_store.movers.get("MV-1")

        assert mover.items == ["IT-A", "IT-B"]

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, pg_store, mock_db):
        mock_db.fetchrow.return_value = None
        assert await pg_store.movers.get("MV-NOPE") is None

    @pytest.mark.asyncio
    async def test_list_orders_by_completed_missions(self, pg_store, mock_db):
        mock_db.fetch.return_value = [
            mover_row(id="MV-1", completed_missions=4),
            mover_row(id="MV-2", completed_missions=1),
        ]

        movers = await pg_store.movers.list_by_completed_missions()

        assert [m.id for m in movers] == ["MV-1", "MV-2"]
        assert "ORDER BY completed_missions DESC" in mock_db.fetch.call_args[0][0]

    @pytest.mark.asyncio
    async def test_delete_all_parses_status(self, pg_store, mock_db):
        mock_db.execute.return_value = "DELETE 3"
        assert await pg_store.movers.delete_all() == 3

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_failure(self, pg_store, mock_db):
        mock_db.fetchrow.side_effect = asyncpg.InterfaceError("connection closed")

        with pytest.raises(StoreFailure) as exc_info:
            await pg_store.movers.get("MV-1")
        assert exc_info.value.operation == "get mover"

    @pytest.mark.asyncio
    async def test_network_error_becomes_store_failure(self, pg_store, mock_db):
        mock_db.fetch.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(StoreFailure):
            await pg_store.movers.list_by_completed_missions()


class TestPostgresItems:
    """Tests for item persistence."""

    @pytest.mark.asyncio
    async def test_get_many_uses_any(self, pg_store, mock_db):
        mock_db.fetch.return_value = [
            {"id": "IT-A", "name": "Anvil", "weight": 4.0, "created_at": NOW},
        ]

        items = await pg_store.items.get_many(["IT-A", "IT-X"])

        assert [i.id for i in items] == ["IT-A"]
        query, ids = mock_db.fetch.call_args[0]
        assert "ANY($1" in query
        assert ids == ["IT-A", "IT-X"]


class TestPostgresLogs:
    """Tests for log persistence."""

    @pytest.mark.asyncio
    async def test_list_recent_orders_by_timestamp(self, pg_store, mock_db):
        mock_db.fetch.return_value = [
            {
                "id": "LG-1",
                "mover_id": "MV-1",
                "item_ids": json.dumps(["IT-A"]),
                "action": "ending mission",
                "timestamp": NOW,
            }
        ]

        [entry] = await pg_store.logs.list_recent()

        assert entry.action == LogAction.ENDING_MISSION
        assert entry.item_ids == ["IT-A"]
        assert "ORDER BY timestamp DESC" in mock_db.fetch.call_args[0][0]


class TestCommitTransition:
    """Tests for the atomic mover + log commit."""

    @pytest.fixture
    def change(self):
        mover = Mover(
            id="MV-1",
            name="Atlas",
            weight_limit=10,
            quest_state=QuestState.ON_MISSION,
            items=["IT-A"],
            version=8,
        )
        entry = LogEntry(mover_id="MV-1", item_ids=["IT-A"], action=LogAction.STARTING_MISSION)
        return mover, entry

    @pytest.mark.asyncio
    async def test_updates_then_logs(self, pg_store, mock_db, change):
        mover, entry = change
        mock_db.conn.execute.side_effect = ["UPDATE 1", "INSERT 0 1"]

        ok = await pg_store.commit_transition(mover, QuestState.LOADING, 7, entry)

        assert ok is True
        update_call, insert_call = mock_db.conn.execute.call_args_list
        assert "WHERE id = $1 AND quest_state = $9 AND version = $10" in update_call.args[0]
        assert update_call.args[-2:] == ("loading", 7)
        assert "INSERT INTO mover_logs" in insert_call.args[0]
        assert insert_call.args[1] == entry.id

    @pytest.mark.asyncio
    async def test_conflict_skips_log(self, pg_store, mock_db, change):
        mover, entry = change
        mock_db.conn.execute.return_value = "UPDATE 0"

        ok = await pg_store.commit_transition(mover, QuestState.LOADING, 7, entry)

        assert ok is False
        assert mock_db.conn.execute.call_count == 1

    @pytest.mark.asyncio
    async def test_failure_inside_transaction(self, pg_store, mock_db, change):
        mover, entry = change
        mock_db.conn.execute.side_effect = ["UPDATE 1", asyncpg.PostgresError("boom")]

        with pytest.raises(StoreFailure):
            await pg_store.commit_transition(mover, QuestState.LOADING, 7, entry)


class TestPing:
    """Tests for the store health check."""

    @pytest.mark.asyncio
    async def test_ping_ok(self, pg_store, mock_db):
        mock_db.fetchval.return_value = 1
        assert await pg_store.ping() is True

    @pytest.mark.asyncio
    async def test_ping_without_pool(self, pg_store, mock_db):
        mock_db.fetchval.side_effect = RuntimeError("Database pool not initialized")
        assert await pg_store.ping() is False


class TestOpenDatabase:
    """Tests for connecting the global database."""

    @pytest.mark.asyncio
    async def test_returns_connected_database(self):
        with patch("magic_movers.db.fleet_store.init_database", new_callable=AsyncMock) as mock_init:
            db = await open_database()
        assert db is mock_init.return_value

    @pytest.mark.asyncio
    async def test_connection_refused_is_store_failure(self):
        with patch("magic_movers.db.fleet_store.init_database",
                   new_callable=AsyncMock, side_effect=ConnectionRefusedError("refused")):
            with pytest.raises(StoreFailure) as exc_info:
                await open_database()
        assert exc_info.value.operation == "connect"
