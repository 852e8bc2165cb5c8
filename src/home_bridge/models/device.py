from pydantic import BaseModel
from typing import Optional


class DeviceCommand(BaseModel):
    device: str
    state: bool


class ToggleRequest(BaseModel):
    """Body of a toggle call; device is checked by the route, not the schema"""
    device: Optional[str] = None
    state: bool = False


class ToggleResult(BaseModel):
    success: bool = True
    device: str
    state: bool
