"""Tests for the application entry point."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from magic_movers.fleet.store import MemoryFleetStore


class TestAPI:
    """Tests for the app-level endpoints."""

    @pytest.fixture
    def client(self):
        """Create test client with the in-memory backend."""
        with patch("magic_movers.api.main.load_app_config") as mock_config:
            mock_config.return_value = MagicMock(store_backend="memory", log_level="WARNING")
            from magic_movers.api.main import app

            with TestClient(app) as client:
                yield client

    def test_ping_endpoint(self, client):
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.json()["message"] == "pong"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "store": "MemoryFleetStore"}

    def test_routes_are_mounted(self, client):
        response = client.post("/api/magic-movers", json={"name": "Atlas", "weight_limit": 3})
        assert response.status_code == 201
        assert client.get("/api/magic-movers").json()[0]["name"] == "Atlas"


class TestBuildStore:
    """Tests for store selection at startup."""

    @pytest.mark.asyncio
    async def test_memory_backend(self):
        from magic_movers.api.main import build_store

        assert isinstance(await build_store("memory"), MemoryFleetStore)

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_when_db_down(self):
        from magic_movers.api.main import build_store

        with patch(
            "magic_movers.api.main.init_database",
            new_callable=AsyncMock,
            side_effect=OSError("connection refused"),
        ), patch("magic_movers.api.main.close_database", new_callable=AsyncMock):
            store = await build_store("postgres")

        assert isinstance(store, MemoryFleetStore)

    @pytest.mark.asyncio
    async def test_postgres_backend(self):
        from magic_movers.api.main import build_store
        from magic_movers.db.fleet_store import PostgresFleetStore

        database = MagicMock()
        with patch(
            "magic_movers.api.main.init_database", new_callable=AsyncMock, return_value=database
        ), patch("magic_movers.api.main.ensure_tables", new_callable=AsyncMock) as mock_ensure:
            store = await build_store("postgres")

        assert isinstance(store, PostgresFleetStore)
        mock_ensure.assert_called_once_with(database)
