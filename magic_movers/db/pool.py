"""asyncpg connection pool shared by the fleet repositories."""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

logger = logging.getLogger(__name__)

# Global database instance
_database: Optional["Database"] = None


class Database:
    """Async PostgreSQL pool manager.

    Connects either through a DSN (``DATABASE_URI``) or through the
    individual ``DB_*`` settings.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "magic_movers",
        user: str = "movers",
        password: str = "",
        min_size: int = 2,
        max_size: int = 10,
        dsn: Optional[str] = None,
    ):
        """Initialize database configuration.

        Args:
            host: PostgreSQL host
            port: PostgreSQL port
            database: Database name
            user: Database user
            password: Database password
            min_size: Minimum pool size
            max_size: Maximum pool size
            dsn: Connection URI, takes precedence over host/port/user
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.min_size = min_size
        self.max_size = max_size
        self.dsn = dsn
        self.pool: Optional[asyncpg.Pool] = None

    @classmethod
    def from_env(cls) -> "Database":
        """Create Database instance from environment variables."""
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "magic_movers"),
            user=os.getenv("DB_USER", "movers"),
            password=os.getenv("DB_PASSWORD", ""),
            min_size=int(os.getenv("DB_POOL_MIN", "2")),
            max_size=int(os.getenv("DB_POOL_MAX", "10")),
            dsn=os.getenv("DATABASE_URI") or None,
        )

    async def connect(self) -> None:
        """Create the connection pool."""
        if self.pool is not None:
            logger.warning("Database pool already exists")
            return

        if self.dsn:
            logger.info("Connecting to PostgreSQL via DATABASE_URI")
            self.pool = await asyncpg.create_pool(
                dsn=self.dsn, min_size=self.min_size, max_size=self.max_size
            )
        else:
            logger.info(
                f"Connecting to PostgreSQL: {self.user}@{self.host}:{self.port}/{self.database}"
            )
            self.pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                min_size=self.min_size,
                max_size=self.max_size,
            )

        logger.info("Database pool created successfully")

    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self.pool is None:
            logger.warning("Database pool does not exist")
            return

        await self.pool.close()
        self.pool = None
        logger.info("Database pool closed")

    @asynccontextmanager
    async def connection(self):
        """Get a connection from the pool.

        Raises:
            RuntimeError: If the pool is not initialized
        """
        if self.pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")

        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self):
        """Get a connection inside a transaction.

        Commits when the block exits normally, rolls back if it raises.
        """
        async with self.connection() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args) -> str:
        """Execute a query and return the command status string."""
        async with self.connection() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args) -> list:
        """Execute a query and return all rows."""
        async with self.connection() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args):
        """Execute a query and return the first row, or None."""
        async with self.connection() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args):
        """Execute a query and return the first value of the first row."""
        async with self.connection() as conn:
            return await conn.fetchval(query, *args)


def get_database() -> Database:
    """Get or create the global database instance."""
    global _database
    if _database is None:
        _database = Database.from_env()
    return _database


async def init_database() -> Database:
    """Initialize and connect the global database instance."""
    db = get_database()
    await db.connect()
    return db


async def close_database() -> None:
    """Close the global database instance."""
    global _database
    if _database is not None:
        await _database.disconnect()
        _database = None
