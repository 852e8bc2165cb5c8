# src/home_bridge/api/routes.py
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from typing import Any, Dict, List, Optional
from ..core.snapshot import utc_now
from ..models.device import ToggleRequest
from ..utils.logging import get_logger
from ..utils.exceptions import DatabaseError, PublishFailed, UnknownDevice
from .dependencies import (
    CommandRouterDependency,
    DBDependency,
    HistoryWindowDependency,
    SnapshotDependency,
)

logger = get_logger(__name__)

sensor_router = APIRouter()
control_router = APIRouter()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@sensor_router.get("/sensor/current")
async def get_current_readings(store: SnapshotDependency) -> Dict[str, Any]:
    return store.read().model_dump(mode="json", by_alias=True)


@sensor_router.get("/sensor/history")
async def get_history(db: DBDependency, window: HistoryWindowDependency) -> List[Dict[str, Any]]:
    end_time = utc_now()
    try:
        readings = await db.history.query_range(end_time - window, end_time)
    except DatabaseError as e:
        logger.error(f"Error fetching historical data: {e}")
        return error_response(500, "Failed to fetch historical data")
    return [reading.model_dump(mode="json", by_alias=True) for reading in readings]


@control_router.post("/control/toggle")
async def toggle_device(router: CommandRouterDependency,
                        command: Optional[ToggleRequest] = None) -> Dict[str, Any]:
    if command is None or not command.device:
        return error_response(400, "Device name is required")

    try:
        result = await router.toggle(command.device, command.state)
    except UnknownDevice:
        return error_response(400, "Unknown device")
    except PublishFailed as e:
        logger.error(f"Failed to send command to {command.device}: {e}")
        return error_response(500, "Failed to send command")

    return result.model_dump()
