import pytest
from unittest.mock import AsyncMock
from home_bridge.adapters.base import PublishResult
from home_bridge.core.command_router import CommandRouter
from home_bridge.core.topics import TopicLayout
from home_bridge.utils.exceptions import PublishFailed, UnknownDevice


@pytest.fixture
def bus():
    bus = AsyncMock()
    bus.publish.side_effect = lambda topic, payload, qos=None: PublishResult(topic=topic, success=True)
    return bus


@pytest.mark.asyncio
async def test_toggle_on_publishes_one(bus):
    router = CommandRouter(bus)
    result = await router.toggle("livingRoomLight", True)

    bus.publish.assert_awaited_once_with("control/light/living", "1", qos=None)
    assert result.model_dump() == {"success": True, "device": "livingRoomLight", "state": True}


@pytest.mark.asyncio
async def test_toggle_off_publishes_zero_with_prefix_and_qos(bus):
    router = CommandRouter(bus, layout=TopicLayout(prefix="esp32"), qos=1)
    result = await router.toggle("robotVacuum", False)

    bus.publish.assert_awaited_once_with("esp32/control/vacuum", "0", qos=1)
    assert result.state is False


@pytest.mark.asyncio
async def test_unknown_device_never_reaches_bus(bus):
    router = CommandRouter(bus)
    with pytest.raises(UnknownDevice):
        await router.toggle("unknownDevice", True)
    bus.publish.assert_not_called()


@pytest.mark.asyncio
async def test_custom_device_map_replaces_defaults(bus):
    router = CommandRouter(bus, {"garageDoor": "control/garage"})

    await router.toggle("garageDoor", True)
    with pytest.raises(UnknownDevice):
        await router.toggle("kitchenLight", True)


@pytest.mark.asyncio
async def test_rejected_publish_raises(bus):
    bus.publish.side_effect = None
    bus.publish.return_value = PublishResult(topic="control/ac", success=False, error="Not connected")
    router = CommandRouter(bus)

    with pytest.raises(PublishFailed):
        await router.toggle("airConditioner", True)
    bus.publish.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_bus_raises_publish_failed():
    with pytest.raises(PublishFailed):
        await CommandRouter(None).toggle("kitchenLight", True)
