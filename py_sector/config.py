"""Configuration management."""

import logging
import sys

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PY_SECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Generation defaults
    agent_count: int = Field(default=300, ge=0, description="Agents per subsector simulation")
    iterations: int = Field(default=200, ge=0, description="Simulation steps per subsector")
    default_levels: int = Field(default=4, ge=2, le=16, description="Default grey levels")
    default_presence_threshold: int = Field(default=3, ge=1, le=16, description="Default presence threshold")

    # Layout
    max_canvas_width: int = Field(default=1200, description="Maximum on-screen map width")
    max_canvas_height: int = Field(default=1200, description="Maximum on-screen map height")
    export_scale: int = Field(default=3, ge=1, description="Export resolution multiplier")


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Route structlog through stdlib logging with JSON or console output."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level.upper())

    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


settings = Settings()
