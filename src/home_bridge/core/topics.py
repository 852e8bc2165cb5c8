from enum import Enum
from dataclasses import dataclass
from typing import Optional


class RouteKind(Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    AIR_QUALITY = "air_quality"
    DEVICE_STATUS = "device_status"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class TopicRoute:
    kind: RouteKind
    device: Optional[str] = None


@dataclass(frozen=True)
class TopicLayout:
    """Bus topic names, relative to an optional prefix such as ``esp32``"""
    prefix: str = ""
    temperature: str = "sensor/temperature"
    humidity: str = "sensor/humidity"
    air_quality: str = "sensor/airquality"
    device_status: str = "device"

    def qualify(self, topic: str) -> str:
        prefix = self.prefix.strip("/")
        return f"{prefix}/{topic}" if prefix else topic

    @property
    def device_status_pattern(self) -> str:
        return self.qualify(f"{self.device_status}/#")

    def subscriptions(self):
        return [
            self.qualify(self.temperature),
            self.qualify(self.humidity),
            self.qualify(self.air_quality),
            self.device_status_pattern,
        ]


def classify_topic(topic: str, layout: TopicLayout = TopicLayout()) -> TopicRoute:
    """Map a concrete bus topic to the route that handles it.

    Sensor topics match exactly; ``<device_status>/<name>`` matches by prefix
    and carries the last topic segment as the device name.
    """
    exact = {
        layout.qualify(layout.temperature): RouteKind.TEMPERATURE,
        layout.qualify(layout.humidity): RouteKind.HUMIDITY,
        layout.qualify(layout.air_quality): RouteKind.AIR_QUALITY,
    }
    if topic in exact:
        return TopicRoute(exact[topic])

    status_prefix = layout.qualify(layout.device_status) + "/"
    if topic.startswith(status_prefix):
        device = topic.rsplit("/", 1)[-1]
        if device:
            return TopicRoute(RouteKind.DEVICE_STATUS, device=device)

    return TopicRoute(RouteKind.UNRECOGNIZED)
