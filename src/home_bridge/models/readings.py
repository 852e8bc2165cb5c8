from enum import Enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Quantity(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    AIR_QUALITY = "air_quality"
    ENERGY_USAGE = "energy_usage"


class CamelModel(BaseModel):
    """Serialises to the camelCase field names the dashboard expects"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SensorSnapshot(CamelModel):
    temperature: float = 0.0
    humidity: float = 0.0
    air_quality: float = 0.0
    energy_usage: float = 51.0
    # moment of the last durable write attempt, not of the last update
    last_persisted_at: datetime = Field(alias="timestamp")


class SensorReading(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    temperature: float
    humidity: float
    air_quality: float
    timestamp: datetime

    @classmethod
    def from_snapshot(cls, snapshot: SensorSnapshot, timestamp: datetime) -> "SensorReading":
        return cls(
            temperature=snapshot.temperature,
            humidity=snapshot.humidity,
            air_quality=snapshot.air_quality,
            timestamp=timestamp
        )
