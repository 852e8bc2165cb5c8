# src/home_bridge/__main__.py
import argparse
import asyncio
import os
import signal
import sys
from datetime import timedelta
from typing import Optional
from fastapi import FastAPI
from hypercorn.asyncio import serve
from hypercorn.config import Config as HyperConfig
import traceback

from home_bridge.api.app import create_app
from home_bridge.core.command_router import CommandRouter
from home_bridge.core.communication_service import CommunicationService
from home_bridge.core.config_manager import BridgeConfig, ConfigManager
from home_bridge.core.ingestion import IngestionService
from home_bridge.core.persistence import PersistenceGate
from home_bridge.core.snapshot import SnapshotStore
from home_bridge.storage.sensor_database import SensorDatabase
from home_bridge.utils.logging import setup_logging, get_logger
from home_bridge.utils.exceptions import ConfigurationError, InitializationError

DEFAULT_CONFIG_PATH = "src/config/default.yml"


class AppState:
    """Holds application state and components"""
    def __init__(self):
        self.db: Optional[SensorDatabase] = None
        self.snapshot_store: Optional[SnapshotStore] = None
        self.persistence_gate: Optional[PersistenceGate] = None
        self.communication_service: Optional[CommunicationService] = None
        self.ingestion_service: Optional[IngestionService] = None
        self.command_router: Optional[CommandRouter] = None
        self.history_window: timedelta = timedelta(hours=24)


class APIServer:
    """Handles API server initialization and management"""
    
    def __init__(self, config: BridgeConfig, shutdown_event: asyncio.Event, app_state: AppState):
        self.config = config
        self.shutdown_event = shutdown_event
        self.logger = get_logger("API Server")
        self.app: Optional[FastAPI] = None
        self.app_state = app_state

    def initialize(self) -> FastAPI:
        """Initialize FastAPI application with routes"""
        try:
            self.app = create_app(self.app_state, self.config.api.cors_origins)
            return self.app
        except Exception:
            raise InitializationError(f"Failed to initialize API server: {traceback.format_exc()}")

    async def start(self):
        """Start the API server"""
        if not self.app:
            self.initialize()

        hypercorn_config = HyperConfig()
        host = self.config.api.host
        port = self.config.api.port
        hypercorn_config.bind = [f"{host}:{port}"]

        async def shutdown_trigger():
            await self.shutdown_event.wait()

        try:
            self.logger.info(f"Starting API server on {host}:{port}")
            await serve(self.app, hypercorn_config, shutdown_trigger=shutdown_trigger)
        except Exception:
            self.logger.error(f"Failed to start API server: {traceback.format_exc()}")
            raise


class HomeBridgeApp:
    """Main home bridge application class"""
    
    def __init__(self, config_path: str):
        self.logger = get_logger("Main App")
        try:
            self.config = ConfigManager.load_config(config_path)
            setup_logging(self.config.logging.model_dump())
        except ConfigurationError:
            self.logger.error(f"Configuration error: {traceback.format_exc()}")
            sys.exit(1)

        self.shutdown_event = asyncio.Event()
        self.app_state = AppState()
        self.app_state.history_window = self.config.ingestion.history_window
        self.api_server = APIServer(self.config, self.shutdown_event, self.app_state)
        self._shutting_down = False

    async def initialize_components(self):
        """Initialize all application components"""
        try:
            ingestion = self.config.ingestion

            self.app_state.db = SensorDatabase(self.config.database.path,
                                               max_connections=self.config.database.pool_size)
            await self.app_state.db.initialize()

            # The snapshot and the throttle window start at process start
            self.app_state.snapshot_store = SnapshotStore(defaults=ingestion.defaults)
            self.app_state.persistence_gate = PersistenceGate(
                self.app_state.snapshot_store,
                self.app_state.db.history,
                interval=ingestion.throttle
            )

            self.app_state.communication_service = CommunicationService(self.config.model_dump())
            await self.app_state.communication_service.initialize()
            bus = self.app_state.communication_service.mqtt

            self.app_state.ingestion_service = IngestionService(
                self.app_state.snapshot_store,
                self.app_state.persistence_gate,
                layout=ingestion.layout,
                bus=bus
            )
            await self.app_state.ingestion_service.start()

            self.app_state.command_router = CommandRouter(
                bus,
                self.config.devices,
                layout=ingestion.layout,
                qos=self.config.communication.mqtt.publish_qos
            )

            self.logger.info("All components initialized successfully")
        except Exception:
            raise InitializationError(f"Failed to initialize components: {traceback.format_exc()}")

    async def shutdown(self):
        """Gracefully shutdown all components"""
        if self._shutting_down:
            return
        self._shutting_down = True
        self.logger.info("Initiating shutdown sequence")
        try:
            if self.app_state.ingestion_service:
                await self.app_state.ingestion_service.stop()
            if self.app_state.communication_service:
                await self.app_state.communication_service.shutdown()
            if self.app_state.db:
                await self.app_state.db.close()
            self.logger.info("Shutdown completed successfully")
        except Exception:
            self.logger.error(f"Error during shutdown: {traceback.format_exc()}")
        finally:
            self.shutdown_event.set()

    def handle_signals(self):
        """Set up signal handlers for graceful shutdown"""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}")
            asyncio.create_task(self.shutdown())

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler, sig)

    async def run(self):
        """Main application entry point"""
        try:
            self.handle_signals()
            await self.initialize_components()
            await self.api_server.start()
        except InitializationError:
            self.logger.error(f"Initialization error: {traceback.format_exc()}")
            await self.shutdown()
            sys.exit(1)
        except Exception:
            self.logger.error(f"Unexpected error: {traceback.format_exc()}")
            await self.shutdown()
            sys.exit(1)
        await self.shutdown()


def main():
    """Application entry point"""
    parser = argparse.ArgumentParser(description="Bridge MQTT sensor data to a dashboard API")
    parser.add_argument(
        "--config",
        default=os.environ.get("HOME_BRIDGE_CONFIG", DEFAULT_CONFIG_PATH),
        help="Path to the YAML configuration file"
    )
    args = parser.parse_args()

    app = HomeBridgeApp(args.config)
    asyncio.run(app.run())

if __name__ == "__main__":
    main()
