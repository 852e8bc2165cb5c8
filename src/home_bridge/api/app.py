from typing import Any, List, Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .routes import sensor_router, control_router


def create_app(components: Any, cors_origins: Optional[List[str]] = None) -> FastAPI:
    """Build the HTTP API over already-initialised components"""
    app = FastAPI(
        title="Home Bridge API",
        description="Current and historical sensor state and device control for the dashboard",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Store app state for dependency injection
    app.state.components = components

    app.include_router(sensor_router, prefix="/api")
    app.include_router(control_router, prefix="/api")
    return app
