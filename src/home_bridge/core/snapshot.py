# In-memory latest-state snapshot

from typing import Dict, Optional
from datetime import datetime, timezone
import threading
from ..models.readings import Quantity, SensorSnapshot


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotStore:
    """Most recent value per quantity plus the last persistence attempt.

    One lock guards the whole record, so ``read()`` always returns a
    consistent copy. Same-quantity updates are last-write-wins in the order
    they are applied; a single sequential subscription stream feeds them, so
    that order is the bus delivery order.
    """

    def __init__(self, defaults: Optional[Dict[str, float]] = None,
                 started_at: Optional[datetime] = None):
        initial = SensorSnapshot(last_persisted_at=started_at or utc_now())
        self._values: Dict[Quantity, float] = {
            quantity: float(getattr(initial, quantity.value)) for quantity in Quantity
        }
        for name, value in (defaults or {}).items():
            self._values[Quantity(name)] = float(value)
        self._last_persisted_at = initial.last_persisted_at
        self._lock = threading.Lock()

    def update(self, quantity: Quantity, value: float) -> None:
        """Set the latest value of one quantity, leaving the others untouched."""
        with self._lock:
            self._values[Quantity(quantity)] = float(value)

    def read(self) -> SensorSnapshot:
        """Point-in-time copy of the snapshot."""
        with self._lock:
            return SensorSnapshot(
                temperature=self._values[Quantity.TEMPERATURE],
                humidity=self._values[Quantity.HUMIDITY],
                air_quality=self._values[Quantity.AIR_QUALITY],
                energy_usage=self._values[Quantity.ENERGY_USAGE],
                last_persisted_at=self._last_persisted_at
            )

    @property
    def last_persisted_at(self) -> datetime:
        with self._lock:
            return self._last_persisted_at

    def mark_persisted(self, at: datetime) -> None:
        with self._lock:
            self._last_persisted_at = at
