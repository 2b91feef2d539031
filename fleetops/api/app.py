"""
fleetops/api/app.py

FastAPI application factory.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from fleetops.api.routers.fuel_purchases import router as fuel_purchases_router
from fleetops.config.loader import DEFAULT_CONFIG_PATH, load_config
from fleetops.db.connection import load_env_file
from fleetops.logging.init import setup_logging
from fleetops.models.config_models import AppConfig


def create_app(config: AppConfig | None = None, config_path: Path = DEFAULT_CONFIG_PATH) -> FastAPI:
    """
    Build the API. Without an explicit config, .env and config/fleetops.yml are loaded.
    """

    setup_logging()
    if config is None:
        load_env_file()
        config = load_config(config_path)

    app = FastAPI(title="fleetops")
    app.state.config = config
    app.include_router(fuel_purchases_router)

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"message": "pong"}

    return app
