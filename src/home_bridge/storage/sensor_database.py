from pathlib import Path
from ..storage.database import ConnectionPool, MEMORY_PATH
from ..storage.history import HistoryRepository
from ..utils.logging import get_logger

logger = get_logger(__name__)

class SensorDatabase:
    """Main database manager class"""
    def __init__(self, db_path: str, max_connections: int = 5):
        self.pool = ConnectionPool(db_path, max_connections)
        self.history = HistoryRepository(self.pool)

    async def initialize(self) -> None:
        """Initialize the database and its tables"""
        if self.pool.db_path != MEMORY_PATH:
            Path(self.pool.db_path).parent.mkdir(parents=True, exist_ok=True)
        await self.pool.initialize()

        try:
            await self.history.create_table()
            await self.history.create_indices()
        except Exception as e:
            logger.error(f"Failed to create history tables: {e}")
            await self.pool.close()
            raise
        logger.info(f"Database ready at {self.pool.db_path}")

    async def close(self) -> None:
        """Close all database connections"""
        logger.info("Shutting down database...")
        await self.pool.close()
        logger.info("Database connections closed")
