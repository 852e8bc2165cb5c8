# src/home_bridge/api/dependencies.py
from fastapi import Request
from typing import Annotated
from datetime import timedelta
from fastapi import Depends
from ..storage.sensor_database import SensorDatabase
from ..core.snapshot import SnapshotStore
from ..core.command_router import CommandRouter

async def get_db(request: Request) -> SensorDatabase:
    return request.app.state.components.db

async def get_snapshot_store(request: Request) -> SnapshotStore:
    return request.app.state.components.snapshot_store

async def get_command_router(request: Request) -> CommandRouter:
    return request.app.state.components.command_router

async def get_history_window(request: Request) -> timedelta:
    return request.app.state.components.history_window

# Type definitions for dependencies
DBDependency = Annotated[SensorDatabase, Depends(get_db)]
SnapshotDependency = Annotated[SnapshotStore, Depends(get_snapshot_store)]
CommandRouterDependency = Annotated[CommandRouter, Depends(get_command_router)]
HistoryWindowDependency = Annotated[timedelta, Depends(get_history_window)]
