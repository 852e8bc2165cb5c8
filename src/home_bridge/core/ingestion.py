from typing import Any, Optional
import math
import traceback
from .topics import RouteKind, TopicLayout, TopicRoute, classify_topic
from .snapshot import SnapshotStore
from .persistence import PersistenceGate
from ..adapters.base import MessageBus
from ..models.readings import Quantity
from ..utils.logging import get_logger
from ..utils.exceptions import MalformedPayload, UnknownTopic

logger = get_logger(__name__)

ROUTE_QUANTITIES = {
    RouteKind.TEMPERATURE: Quantity.TEMPERATURE,
    RouteKind.HUMIDITY: Quantity.HUMIDITY,
    RouteKind.AIR_QUALITY: Quantity.AIR_QUALITY,
}


def parse_value(payload: Any) -> float:
    """Parse a bus payload as a finite decimal number"""
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayload(f"Payload is not valid UTF-8: {e}")
    if isinstance(payload, bool) or payload is None:
        raise MalformedPayload(f"Payload is not a number: {payload!r}")
    try:
        value = float(payload.strip() if isinstance(payload, str) else payload)
    except (TypeError, ValueError):
        raise MalformedPayload(f"Payload is not a number: {payload!r}")
    if not math.isfinite(value):
        raise MalformedPayload(f"Payload is not a finite number: {payload!r}")
    return value


class IngestionService:
    """Feeds bus messages into the snapshot and the persistence gate"""

    def __init__(self, store: SnapshotStore, gate: PersistenceGate,
                 layout: TopicLayout = TopicLayout(), bus: Optional[MessageBus] = None):
        self.store = store
        self.gate = gate
        self.layout = layout
        self.bus = bus

    async def start(self) -> None:
        if not self.bus:
            logger.warning("No message bus configured, ingestion is idle")
            return
        for topic in self.layout.subscriptions():
            await self.bus.subscribe(topic, self.on_message)
        logger.info("Ingestion service started")

    async def stop(self) -> None:
        if not self.bus:
            return
        for topic in self.layout.subscriptions():
            await self.bus.unsubscribe(topic, self.on_message)
        logger.info("Ingestion service stopped")

    async def on_message(self, topic: str, payload: Any) -> None:
        """Handle one inbound message. Never raises."""
        logger.debug(f"Received message on {topic}: {payload!r}")
        try:
            route = classify_topic(topic, self.layout)
            await self._handle(route, topic, payload)
        except UnknownTopic:
            logger.debug(f"Ignoring message on unrecognized topic {topic}")
        except MalformedPayload as e:
            logger.warning(f"Discarding message on {topic}: {e}")
        except Exception:
            logger.error(f"Error processing MQTT message on {topic}: {traceback.format_exc()}")

    async def _handle(self, route: TopicRoute, topic: str, payload: Any) -> None:
        if route.kind is RouteKind.UNRECOGNIZED:
            raise UnknownTopic(topic)

        if route.kind is RouteKind.DEVICE_STATUS:
            status = payload.decode("utf-8", "replace") if isinstance(payload, (bytes, bytearray)) else payload
            logger.info(f"Device {route.device} status: {status}")
            return

        value = parse_value(payload)
        self.store.update(ROUTE_QUANTITIES[route.kind], value)
        await self.gate.maybe_persist(self.store.read())
