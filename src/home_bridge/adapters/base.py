# Abstract base class for message bus adapters

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Union
from pydantic import BaseModel

MessageHandler = Callable[[str, Any], Awaitable[None]]


class PublishResult(BaseModel):
    """Outcome of a publish, as accepted (or not) by the local client"""
    topic: str
    success: bool
    error: Optional[str] = None


class MessageBus(ABC):
    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Deliver every message whose topic matches ``topic`` to ``handler``"""
        pass

    @abstractmethod
    async def unsubscribe(self, topic: str, handler: Optional[MessageHandler] = None) -> None:
        pass

    @abstractmethod
    async def publish(self, topic: str, payload: Union[str, bytes],
                      qos: Optional[int] = None, retain: bool = False) -> PublishResult:
        pass
