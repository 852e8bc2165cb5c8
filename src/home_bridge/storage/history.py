from typing import List, Dict, Any
from datetime import datetime
from .database import ConnectionPool, to_db_timestamp, from_db_timestamp
import aiosqlite
from ..utils.logging import get_logger
from ..utils.exceptions import DatabaseError, StoreUnavailable
from ..models.readings import SensorReading

logger = get_logger(__name__)

class HistoryRepository:
    """Append-only store of persisted snapshot samples"""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool
        self.table_name = "sensor_readings"

    async def create_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS sensor_readings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    temperature REAL NOT NULL,
                    humidity REAL NOT NULL,
                    air_quality REAL NOT NULL,
                    timestamp TEXT NOT NULL
                )
            ''')
            await conn.commit()

    async def create_indices(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute('''
                CREATE INDEX IF NOT EXISTS idx_sensor_readings_time 
                ON sensor_readings(timestamp)
            ''')
            await conn.commit()

    async def append(self, reading: SensorReading) -> SensorReading:
        try:
            async with self.pool.acquire() as conn:
                async with conn.execute('''
                    INSERT INTO sensor_readings 
                    (temperature, humidity, air_quality, timestamp)
                    VALUES (?, ?, ?, ?)
                ''', (
                    reading.temperature,
                    reading.humidity,
                    reading.air_quality,
                    to_db_timestamp(reading.timestamp)
                )) as cursor:
                    reading_id = cursor.lastrowid
                await conn.commit()
                return reading.model_copy(update={"id": reading_id})
        except (aiosqlite.Error, DatabaseError) as e:
            logger.error(f"Failed to store sensor reading: {e}")
            raise StoreUnavailable(f"Failed to store sensor reading: {e}")

    async def query_range(self, start_time: datetime, end_time: datetime) -> List[SensorReading]:
        """Readings with ``start_time <= timestamp <= end_time``, oldest first"""
        query = '''
            SELECT * FROM sensor_readings 
            WHERE timestamp BETWEEN ? AND ?
            ORDER BY timestamp ASC, id ASC
        '''
        params = [to_db_timestamp(start_time), to_db_timestamp(end_time)]

        try:
            async with self.pool.acquire() as conn:
                conn.row_factory = aiosqlite.Row
                async with conn.execute(query, params) as cursor:
                    rows = await cursor.fetchall()
                    return [self._row_to_reading(dict(row)) for row in rows]
        except (aiosqlite.Error, DatabaseError) as e:
            logger.error(f"Failed to query sensor readings: {e}")
            raise StoreUnavailable(f"Failed to query sensor readings: {e}")

    def _row_to_reading(self, row: Dict[str, Any]) -> SensorReading:
        return SensorReading(
            id=row['id'],
            temperature=row['temperature'],
            humidity=row['humidity'],
            air_quality=row['air_quality'],
            timestamp=from_db_timestamp(row['timestamp'])
        )
