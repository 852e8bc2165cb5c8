import asyncio
from typing import Dict, Any, Optional, Union, List
from pydantic import BaseModel, Field
import aiomqtt as mqtt
from aiomqtt import Will
import traceback
import random
import ssl
from ..adapters.base import MessageBus, MessageHandler, PublishResult
from ..utils.logging import get_logger
from ..utils.exceptions import CommunicationError

logger = get_logger(__name__)

'''
usage Examples

await mqtt_adapter.connect()
await mqtt_adapter.subscribe("sensor/#", message_handler)

result = await mqtt_adapter.publish("control/ac", "1")

await mqtt_adapter.disconnect()

'''


class MQTTConfig(BaseModel):
    """MQTT configuration model"""
    enabled: bool = Field(True, description="Connect to the broker at startup")
    host: str = Field(..., description="MQTT broker hostname")
    port: int = Field(1883, description="MQTT broker port")
    username: Optional[str] = Field(None, description="MQTT username")
    password: Optional[str] = Field(None, description="MQTT password")
    keepalive: int = Field(60, description="Connection keepalive in seconds")
    client_id: str = Field("home_bridge", description="MQTT client ID")
    ssl: bool = Field(False, description="Enable SSL/TLS")
    reconnect_interval: float = Field(5.0, description="Reconnection interval in seconds")
    max_reconnect_attempts: int = Field(0, ge=0, description="Consecutive reconnection attempts, 0 retries forever")
    connection_timeout: float = Field(90.0, description="Seconds to wait for the first connection")
    message_queue_size: int = Field(1000, gt=0, description="Maximum size of inbound message queue")
    ca_cert: Optional[str] = Field(None, description="Custom CA certificate")
    client_cert: Optional[str] = Field(None, description="Client certificate")
    client_key: Optional[str] = Field(None, description="Required if client_cert is set")
    verify_hostname: bool = Field(True, description="Verify broker's hostname")
    tls_version: Optional[str] = Field(None, description="TLSv1_2, TLSv1_3, etc.")
    subscribe_qos: int = Field(0, ge=0, le=2, description="qos for subscribe topics")
    publish_qos: int = Field(0, ge=0, le=2, description="qos for publish message")
    clean_session: bool = Field(True, description="Start without a persistent broker session")


class MQTTAdapter(MessageBus):
    """aiomqtt client with reconnection and a bounded inbound queue.

    Received messages are pushed onto a queue by the connection task and
    drained one at a time by a single worker, so handlers never run on the
    connection loop and always see messages in delivery order. When the
    queue is full new messages are dropped.
    """

    def __init__(self, config: Dict[str, Any]):
        """Initialize MQTT adapter with configuration"""
        try:
            self.config = MQTTConfig(**config)
            self.config.keepalive = max(30, self.config.keepalive)
        except Exception as e:
            raise CommunicationError(f"Invalid MQTT configuration: {str(e)}")

        self.client: Optional[mqtt.Client] = None
        self.message_handlers: Dict[str, List[MessageHandler]] = {}
        self.connected = asyncio.Event()
        self._stop_flag = asyncio.Event()
        self._connection_task: Optional[asyncio.Task] = None
        self._worker_task: Optional[asyncio.Task] = None
        self._message_queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.message_queue_size)
        self._subscription_lock = asyncio.Lock()
        self._publish_lock = asyncio.Lock()

    @property
    def status_topic(self) -> str:
        return f"{self.config.client_id}/status"

    def _create_tls_context(self) -> Optional[ssl.SSLContext]:
        """Create SSL context for MQTT connection based on config"""
        if not self.config.ssl:
            return None

        context = ssl.create_default_context()
        
        if self.config.ca_cert:
            context.load_verify_locations(cafile=self.config.ca_cert)
        
        if self.config.client_cert:
            if not self.config.client_key:
                raise CommunicationError("Client key must be provided when using client certificate")
            context.load_cert_chain(
                certfile=self.config.client_cert,
                keyfile=self.config.client_key
            )
        
        if self.config.tls_version:
            context.minimum_version = getattr(ssl.TLSVersion, self.config.tls_version.upper(),
                                              ssl.TLSVersion.TLSv1_2)
        
        context.check_hostname = self.config.verify_hostname
        return context

    def _create_client(self) -> mqtt.Client:
        # Last Will and Testament marks the bridge offline if the connection drops
        will = Will(
            topic=self.status_topic,
            payload="Offline",
            qos=self.config.subscribe_qos,
            retain=True)

        return mqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            keepalive=self.config.keepalive,
            identifier=f"{self.config.client_id}_{random.randint(1000, 9999)}",
            clean_session=self.config.clean_session,
            will=will,
            tls_context=self._create_tls_context()
        )

    def _backoff(self, attempt: int) -> float:
        return min(self.config.reconnect_interval * (2 ** (attempt - 1)), 60)

    async def _subscribe_topics(self) -> None:
        """Subscribe to all stored topics"""
        async with self._subscription_lock:
            for topic in self.message_handlers:
                if self.client:
                    await self.client.subscribe(topic, qos=self.config.subscribe_qos)
                    logger.info(f"Subscribed to topic: {topic}")

    async def _process_messages(self) -> None:
        """Hold the broker connection open, reconnecting with backoff"""
        attempt = 0
        while not self._stop_flag.is_set():
            try:
                async with self._create_client() as client:
                    self.client = client
                    self.connected.set()
                    attempt = 0
                    logger.info(f"Connected to MQTT broker {self.config.host}:{self.config.port}")

                    await client.publish(self.status_topic, payload="Online", qos=1, retain=True)
                    await self._subscribe_topics()

                    async for message in client.messages:
                        if self._stop_flag.is_set():
                            break
                        self._enqueue(str(message.topic), message.payload)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._stop_flag.is_set():
                    break
                logger.error(f"MQTT connection lost: {e}")
            finally:
                if self.connected.is_set():
                    logger.info("Disconnected from MQTT broker")
                self.connected.clear()
                self.client = None

            if self._stop_flag.is_set():
                break

            attempt += 1
            if self.config.max_reconnect_attempts and attempt > self.config.max_reconnect_attempts:
                logger.error(f"Giving up on MQTT broker after {attempt - 1} reconnection attempts")
                break

            wait_time = self._backoff(attempt)
            logger.info(f"MQTT reconnect attempt {attempt} in {wait_time} seconds")
            await asyncio.sleep(wait_time)

    def _enqueue(self, topic: str, payload: Any) -> bool:
        """Hand a received message to the worker; False if it was dropped"""
        try:
            self._message_queue.put_nowait((topic, payload))
            logger.debug(f"Queued message from {topic}")
            return True
        except asyncio.QueueFull:
            logger.warning(f"Message queue full, dropping message from {topic}")
            return False

    async def _dispatch(self, topic: str, payload: Any) -> None:
        """Run every handler whose subscription pattern matches ``topic``"""
        for pattern, handlers in list(self.message_handlers.items()):
            if not mqtt.Topic(topic).matches(pattern):
                continue
            for handler in list(handlers):
                try:
                    await handler(topic, payload)
                except Exception as e:
                    logger.error(f"Error in message handler for topic {topic}: {traceback.format_exc()}")

    async def _process_message_queue(self) -> None:
        """Drain queued messages sequentially into their handlers"""
        while True:
            topic, payload = await self._message_queue.get()
            try:
                await self._dispatch(topic, payload)
            finally:
                self._message_queue.task_done()

    async def connect(self) -> None:
        """Connect to MQTT broker and start message processing"""
        try:
            self._stop_flag.clear()
            self._connection_task = asyncio.create_task(self._process_messages())
            self._worker_task = asyncio.create_task(self._process_message_queue())
        except Exception as e:
            raise CommunicationError(f"Failed to start MQTT adapter: {str(e)}")

    async def disconnect(self) -> None:
        """Disconnect from MQTT broker and cleanup"""
        self._stop_flag.set()

        for task in (self._connection_task, self._worker_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self.connected.clear()
        self.client = None
        logger.info("MQTT adapter stopped")

    async def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Subscribe to MQTT topic pattern with handler"""
        async with self._subscription_lock:
            try:
                if topic not in self.message_handlers:
                    self.message_handlers[topic] = []
                    if self.client and self.connected.is_set():
                        await self.client.subscribe(topic, qos=self.config.subscribe_qos)
                self.message_handlers[topic].append(handler)
                logger.info(f"Subscribed to topic: {topic}")
            except Exception as e:
                raise CommunicationError(f"Failed to subscribe to topic {topic}: {str(e)}")

    async def unsubscribe(self, topic: str, handler: Optional[MessageHandler] = None) -> None:
        """Unsubscribe from MQTT topic pattern"""
        async with self._subscription_lock:
            handlers = self.message_handlers.get(topic)
            if handlers is None:
                return
            if handler and handler in handlers:
                handlers.remove(handler)
            if handler is None or not handlers:
                del self.message_handlers[topic]
                if self.client and self.connected.is_set():
                    try:
                        await self.client.unsubscribe(topic)
                    except Exception as e:
                        raise CommunicationError(f"Failed to unsubscribe from topic {topic}: {str(e)}")
            logger.info(f"Unsubscribed from topic: {topic}")

    async def publish(self, topic: str, payload: Union[str, bytes],
                      qos: Optional[int] = None, retain: bool = False) -> PublishResult:
        """Publish a message and report whether the client accepted it"""
        qos = self.config.publish_qos if qos is None else qos

        async with self._publish_lock:
            if not self.client or not self.connected.is_set():
                logger.error(f"Cannot publish to {topic}: not connected to MQTT broker")
                return PublishResult(topic=topic, success=False, error="Not connected to MQTT broker")
            try:
                await self.client.publish(topic, payload=payload, qos=qos, retain=retain)
            except Exception as e:
                logger.error(f"Failed to publish to {topic}: {e}")
                return PublishResult(topic=topic, success=False, error=str(e))

        logger.debug(f"Published to {topic}")
        return PublishResult(topic=topic, success=True)
