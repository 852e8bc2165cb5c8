from typing import Dict, Any, Optional
import asyncio
from ..adapters.mqtt import MQTTAdapter
from ..utils.logging import get_logger
from ..utils.exceptions import CommunicationError

logger = get_logger(__name__)

class CommunicationService:
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.communication_config = config['communication']
        self.mqtt: Optional[MQTTAdapter] = None
        self._mqtt_connection_timeout = self.communication_config['mqtt'].get('connection_timeout', 90)  # seconds

    async def _wait_for_mqtt_connection(self) -> None:
        """Wait for MQTT connection to be established"""
        try:
            await asyncio.wait_for(
                self.mqtt.connected.wait(),
                timeout=self._mqtt_connection_timeout
            )
        except asyncio.TimeoutError:
            raise CommunicationError(
                f"MQTT connection timeout after {self._mqtt_connection_timeout} seconds"
            )

    async def initialize(self) -> None:
        logger.info("Initializing Communication Service")
        mqtt_config = self.communication_config.get('mqtt', {})
        if not mqtt_config.get('enabled', True):
            logger.warning("MQTT is disabled, no sensor data will be received")
            return

        try:
            self.mqtt = MQTTAdapter(mqtt_config)
            await self.mqtt.connect()
            logger.info("Mqtt service started")
        except Exception as e:
            logger.error(f"Failed to initialize MQTT service: {str(e)}")
            if self.mqtt:
                await self.mqtt.disconnect()
            raise CommunicationError(f"MQTT initialization failed: {str(e)}")

        # the adapter keeps reconnecting in the background and restores
        # subscriptions once the broker is reachable
        try:
            await self._wait_for_mqtt_connection()
            logger.info("MQTT connection established")
        except CommunicationError as e:
            logger.warning(f"{e}, continuing without the broker")

    async def shutdown(self) -> None:
        logger.info("Shutting down communication services")
        if self.mqtt:
            await self.mqtt.disconnect()
