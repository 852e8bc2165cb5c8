import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from home_bridge.core.snapshot import SnapshotStore
from home_bridge.core.persistence import PersistenceGate

STARTED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = STARTED_AT):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return SnapshotStore(started_at=STARTED_AT)


@pytest.fixture
def repository():
    repo = AsyncMock()
    repo.append.side_effect = lambda reading: reading
    return repo


@pytest.fixture
def gate(store, repository, clock):
    return PersistenceGate(store, repository, interval=timedelta(seconds=60), clock=clock)


@pytest.fixture
def started_at():
    return STARTED_AT
