# Configuration management
from typing import Dict, Any, List, Optional
from datetime import timedelta
import traceback
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from ..adapters.mqtt import MQTTConfig
from ..core.topics import TopicLayout
from ..core.command_router import DEFAULT_DEVICE_TOPICS
from ..models.readings import Quantity
from ..utils.exceptions import ConfigurationError

REQUIRED_SECTIONS = ['api', 'communication', 'database', 'ingestion', 'devices', 'logging']


class APIConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = ["*"]


class CommunicationConfig(BaseModel):
    mqtt: MQTTConfig


class DatabaseConfig(BaseModel):
    path: str = "home_bridge.db"
    pool_size: int = Field(5, gt=0)


class IngestionConfig(BaseModel):
    topic_prefix: str = ""
    temperature_topic: str = "sensor/temperature"
    humidity_topic: str = "sensor/humidity"
    air_quality_topic: str = "sensor/airquality"
    device_status_topic: str = "device"
    throttle_interval: float = Field(60.0, ge=0, description="Seconds between durable writes")
    history_window_hours: float = Field(24.0, gt=0)
    defaults: Dict[str, float] = {
        "temperature": 0.0,
        "humidity": 0.0,
        "air_quality": 0.0,
        "energy_usage": 51.0,
    }

    @field_validator('defaults')
    def validate_defaults(cls, v):
        unknown = set(v) - {quantity.value for quantity in Quantity}
        if unknown:
            raise ValueError(f"Unknown quantities in defaults: {', '.join(sorted(unknown))}")
        return v

    @property
    def layout(self) -> TopicLayout:
        return TopicLayout(
            prefix=self.topic_prefix,
            temperature=self.temperature_topic,
            humidity=self.humidity_topic,
            air_quality=self.air_quality_topic,
            device_status=self.device_status_topic
        )

    @property
    def throttle(self) -> timedelta:
        return timedelta(seconds=self.throttle_interval)

    @property
    def history_window(self) -> timedelta:
        return timedelta(hours=self.history_window_hours)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[str] = "logs/home_bridge.log"
    max_size: int = 10
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"

    @field_validator('level')
    def validate_level(cls, v):
        if v.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v.upper()


class BridgeConfig(BaseModel):
    api: APIConfig = APIConfig()
    communication: CommunicationConfig
    database: DatabaseConfig = DatabaseConfig()
    ingestion: IngestionConfig = IngestionConfig()
    devices: Dict[str, str] = dict(DEFAULT_DEVICE_TOPICS)
    logging: LoggingConfig = LoggingConfig()


class ConfigManager:
    """Manages configuration loading and validation"""

    @staticmethod
    def validate(config: Dict[str, Any]) -> BridgeConfig:
        missing_sections = [section for section in REQUIRED_SECTIONS if section not in config]
        if missing_sections:
            raise ConfigurationError(f"Missing required configuration sections: {', '.join(missing_sections)}")
        try:
            return BridgeConfig(**config)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @staticmethod
    def load_config(config_path: str) -> BridgeConfig:
        """Load and validate configuration from YAML file"""
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError:
            raise ConfigurationError(f"Error parsing configuration file: {traceback.format_exc()}")
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if not isinstance(config, dict):
            raise ConfigurationError("Configuration file is empty or incorrectly formatted")

        return ConfigManager.validate(config)
