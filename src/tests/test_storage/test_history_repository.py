import pytest
import pytest_asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from home_bridge.models.readings import SensorReading
from home_bridge.storage.database import ConnectionPool
from home_bridge.storage.sensor_database import SensorDatabase
from home_bridge.utils.exceptions import ConnectionPoolError, StoreUnavailable

BASE = datetime(2024, 5, 1, 0, 0, 0, tzinfo=timezone.utc)


def reading(hours: float, temperature: float = 20.0) -> SensorReading:
    return SensorReading(
        temperature=temperature,
        humidity=45.0,
        air_quality=10.0,
        timestamp=BASE + timedelta(hours=hours)
    )


@pytest_asyncio.fixture
async def db(tmp_path):
    database = SensorDatabase(str(tmp_path / "history.db"), max_connections=2)
    await database.initialize()
    yield database
    await database.close()


@pytest.mark.asyncio
async def test_append_assigns_id(db):
    stored = await db.history.append(reading(0))
    assert stored.id is not None
    assert stored.timestamp == BASE


@pytest.mark.asyncio
async def test_query_range_is_inclusive_and_ascending(db):
    for hours in (3, 0, 2, 1, 2.5):
        await db.history.append(reading(hours, temperature=hours))

    result = await db.history.query_range(BASE + timedelta(hours=1), BASE + timedelta(hours=2.5))

    assert [r.temperature for r in result] == [1, 2, 2.5]
    timestamps = [r.timestamp for r in result]
    assert timestamps == sorted(timestamps)
    assert all(BASE + timedelta(hours=1) <= ts <= BASE + timedelta(hours=2.5) for ts in timestamps)


@pytest.mark.asyncio
async def test_sub_second_timestamps_keep_order(db):
    await db.history.append(reading(0.0001))
    await db.history.append(reading(0))

    result = await db.history.query_range(BASE, BASE + timedelta(hours=1))
    assert [r.timestamp for r in result] == [BASE, BASE + timedelta(hours=0.0001)]


@pytest.mark.asyncio
async def test_duplicate_timestamps_are_kept(db):
    await db.history.append(reading(1, temperature=1))
    await db.history.append(reading(1, temperature=2))

    result = await db.history.query_range(BASE, BASE + timedelta(hours=2))
    assert [r.temperature for r in result] == [1, 2]


@pytest.mark.asyncio
async def test_empty_range(db):
    await db.history.append(reading(5))
    assert await db.history.query_range(BASE, BASE + timedelta(hours=4)) == []


@pytest.mark.asyncio
async def test_missing_table_raises_store_unavailable(db):
    async with db.pool.acquire() as conn:
        await conn.execute("DROP TABLE sensor_readings")
        await conn.commit()

    with pytest.raises(StoreUnavailable):
        await db.history.append(reading(0))
    with pytest.raises(StoreUnavailable):
        await db.history.query_range(BASE, BASE + timedelta(hours=1))


@pytest.mark.asyncio
async def test_pool_opens_several_connections_on_new_file(tmp_path):
    pool = ConnectionPool(str(tmp_path / "fresh.db"), max_connections=5)
    await pool.initialize()
    try:
        assert pool._pool.qsize() == 5
        async with pool.acquire() as conn:
            async with conn.execute("PRAGMA journal_mode") as cursor:
                assert (await cursor.fetchone())[0] == "wal"
    finally:
        await pool.close()


@pytest.mark.asyncio
async def test_in_memory_database_shares_one_connection():
    database = SensorDatabase(":memory:", max_connections=5)
    await database.initialize()
    try:
        assert database.pool.max_connections == 1
        await database.history.append(reading(1))
        result = await database.history.query_range(BASE, BASE + timedelta(hours=2))
        assert [r.timestamp for r in result] == [BASE + timedelta(hours=1)]
    finally:
        await database.close()


@pytest.mark.asyncio
async def test_failed_pool_start_closes_opened_connections(tmp_path):
    pool = ConnectionPool(str(tmp_path / "partial.db"), max_connections=3)
    opened = AsyncMock()
    pool._connect = AsyncMock(side_effect=[opened, OSError("too many open files")])

    with pytest.raises(ConnectionPoolError):
        await pool.initialize()

    opened.close.assert_awaited_once()
    assert pool._pool.empty()
    assert pool._active_connections == 0


@pytest.mark.asyncio
async def test_failed_table_creation_closes_pool(tmp_path):
    database = SensorDatabase(str(tmp_path / "broken.db"), max_connections=2)
    database.history.create_table = AsyncMock(side_effect=StoreUnavailable("disk full"))

    with pytest.raises(StoreUnavailable):
        await database.initialize()

    assert database.pool._pool.empty()
    assert database.pool._active_connections == 0
