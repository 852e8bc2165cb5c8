from typing import Callable, Optional
from datetime import datetime, timedelta
import threading
from .snapshot import SnapshotStore, utc_now
from ..models.readings import SensorSnapshot, SensorReading
from ..storage.history import HistoryRepository
from ..utils.logging import get_logger
from ..utils.exceptions import DatabaseError

logger = get_logger(__name__)

DEFAULT_THROTTLE_INTERVAL = timedelta(seconds=60)


class PersistenceGate:
    """Throttles durable writes of the snapshot.

    A write happens only when more than ``interval`` has elapsed since the
    last attempt. The attempt time is advanced before the write is awaited
    and stays advanced when the write fails: a sample is dropped rather than
    retried against a failing store.
    """

    def __init__(self, store: SnapshotStore, repository: HistoryRepository,
                 interval: timedelta = DEFAULT_THROTTLE_INTERVAL,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.repository = repository
        self.interval = interval
        self._clock = clock or utc_now
        self._lock = threading.Lock()

    def _claim_slot(self) -> Optional[datetime]:
        """Return the write time if this caller won the current window"""
        with self._lock:
            now = self._clock()
            if now - self.store.last_persisted_at <= self.interval:
                return None
            self.store.mark_persisted(now)
            return now

    async def maybe_persist(self, snapshot: SensorSnapshot) -> bool:
        """Persist ``snapshot`` if the throttle window has passed.

        Returns True only when a reading was durably written.
        """
        now = self._claim_slot()
        if now is None:
            return False

        reading = SensorReading.from_snapshot(snapshot, timestamp=now)
        try:
            await self.repository.append(reading)
        except DatabaseError as e:
            logger.error(f"Failed to persist sensor reading, next attempt after {self.interval}: {e}")
            return False

        logger.info(f"Saved sensor reading to database at {now.isoformat()}")
        return True
