import pytest
import httpx
from home_bridge import __main__ as entrypoint
from home_bridge.__main__ import HomeBridgeApp
from home_bridge.core.communication_service import CommunicationService

UNREACHABLE_BROKER = {
    "enabled": True,
    "host": "127.0.0.1",
    "port": 1,
    "connection_timeout": 0.2,
    "reconnect_interval": 30,
}

CONFIG_TEMPLATE = """
api:
  host: "127.0.0.1"
  port: 5000
communication:
  mqtt:
    host: "127.0.0.1"
    port: 1
    connection_timeout: 0.2
    reconnect_interval: 30
database:
  path: "{db_path}"
  pool_size: 2
ingestion:
  throttle_interval: 60
devices:
  livingRoomLight: "control/light/living"
logging:
  level: "INFO"
  file: ""
"""


@pytest.mark.asyncio
async def test_unreachable_broker_does_not_fail_initialization():
    service = CommunicationService({"communication": {"mqtt": UNREACHABLE_BROKER}})

    await service.initialize()
    try:
        assert service.mqtt is not None
        assert not service.mqtt.connected.is_set()
    finally:
        await service.shutdown()


@pytest.mark.asyncio
async def test_api_serves_snapshot_while_broker_is_down(tmp_path, monkeypatch):
    config_path = tmp_path / "bridge.yml"
    config_path.write_text(CONFIG_TEMPLATE.format(db_path=tmp_path / "bridge.db"))
    monkeypatch.setattr(entrypoint, "setup_logging", lambda config: None)

    app = HomeBridgeApp(str(config_path))
    await app.initialize_components()
    try:
        transport = httpx.ASGITransport(app=app.api_server.initialize())
        async with httpx.AsyncClient(transport=transport, base_url="http://bridge") as client:
            current = await client.get("/api/sensor/current")
            toggle = await client.post("/api/control/toggle",
                                       json={"device": "livingRoomLight", "state": True})

        assert current.status_code == 200
        assert current.json()["energyUsage"] == 51.0
        assert toggle.status_code == 500
        assert toggle.json() == {"error": "Failed to send command"}
    finally:
        await app.shutdown()
