import aiosqlite
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from ..utils.logging import get_logger
from ..utils.exceptions import ConnectionPoolError


logger = get_logger(__name__)

MEMORY_PATH = ":memory:"


def to_db_timestamp(value: datetime) -> str:
    """Fixed-width UTC text so stored timestamps sort lexically"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='microseconds')


def from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


class ConnectionPool:
    """Manages a pool of database connections"""
    def __init__(self, db_path: str, max_connections: int = 5):
        self.db_path = db_path
        # every connection to :memory: opens its own private database
        self.max_connections = 1 if db_path == MEMORY_PATH else max_connections
        self._pool: asyncio.Queue = asyncio.Queue(maxsize=self.max_connections)
        self._active_connections = 0
        self._lock = asyncio.Lock()

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        try:
            # an unfinished PRAGMA statement keeps its lock and blocks the next connection
            async with conn.execute('PRAGMA journal_mode=WAL') as cursor:
                await cursor.fetchone()
        except Exception:
            await conn.close()
            raise
        return conn

    async def initialize(self):
        """Initialize the connection pool"""
        logger.info(f"Initializing connection pool with {self.max_connections} connections")
        try:
            for _ in range(self.max_connections):
                await self._pool.put(await self._connect())
                self._active_connections += 1
        except Exception as e:
            logger.error(f"Failed to initialize connection pool: {e}")
            await self.close()
            raise ConnectionPoolError(f"Connection pool initialization failed: {e}")

    @asynccontextmanager
    async def acquire(self):
        """Acquire a connection from the pool"""
        connection = None
        try:
            async with self._lock:
                if self._pool.empty() and self._active_connections < self.max_connections:
                    # Create new connection if pool is empty and we haven't reached max
                    connection = await self._connect()
                    self._active_connections += 1
                else:
                    # Wait for available connection with timeout
                    try:
                        connection = await asyncio.wait_for(self._pool.get(), timeout=5.0)
                    except asyncio.TimeoutError:
                        raise ConnectionPoolError("Timeout waiting for database connection")

            yield connection

        finally:
            if connection:
                try:
                    self._pool.put_nowait(connection)
                except asyncio.QueueFull:
                    logger.error("Connection pool is full, closing returned connection")
                    await connection.close()
                    async with self._lock:
                        self._active_connections -= 1

    async def close(self):
        """Close all connections in the pool"""
        while not self._pool.empty():
            conn = await self._pool.get()
            await conn.close()
        self._active_connections = 0
