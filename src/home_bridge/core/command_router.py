from typing import Dict, Optional
from ..adapters.base import MessageBus
from ..core.topics import TopicLayout
from ..models.device import DeviceCommand, ToggleResult
from ..utils.logging import get_logger
from ..utils.exceptions import PublishFailed, UnknownDevice

logger = get_logger(__name__)

# Dashboard device identifiers and the topics their controllers listen on
DEFAULT_DEVICE_TOPICS: Dict[str, str] = {
    "livingRoomLight": "control/light/living",
    "kitchenLight": "control/light/kitchen",
    "bedroomLight": "control/light/bedroom",
    "airConditioner": "control/ac",
    "robotVacuum": "control/vacuum",
}


class CommandRouter:
    def __init__(self, bus: Optional[MessageBus], device_topics: Optional[Dict[str, str]] = None,
                 layout: TopicLayout = TopicLayout(), qos: Optional[int] = None):
        self.bus = bus
        self.layout = layout
        self.qos = qos
        self.device_topics = {
            device: layout.qualify(topic)
            for device, topic in (device_topics or DEFAULT_DEVICE_TOPICS).items()
        }

    def topic_for(self, device: str) -> str:
        topic = self.device_topics.get(device)
        if topic is None:
            raise UnknownDevice(f"Unknown device: {device}")
        return topic

    async def toggle(self, device: str, state: bool) -> ToggleResult:
        """Publish ``"1"``/``"0"`` to the device's control topic.

        Raises:
            UnknownDevice: before any bus interaction when ``device`` is unmapped
            PublishFailed: when the bus does not accept the message
        """
        command = DeviceCommand(device=device, state=state)
        topic = self.topic_for(command.device)
        payload = "1" if command.state else "0"

        if self.bus is None:
            raise PublishFailed(f"No message bus available for {topic}")

        result = await self.bus.publish(topic, payload, qos=self.qos)
        if not result.success:
            raise PublishFailed(f"Failed to publish to {topic}: {result.error}")

        logger.info(f"Published to {topic}: {payload}")
        return ToggleResult(device=command.device, state=command.state)
