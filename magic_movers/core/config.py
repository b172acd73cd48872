"""Configuration management for Magic Movers."""

import logging
import os
from typing import Literal

from pydantic import BaseModel


class AppConfig(BaseModel):
    """Application configuration."""
    store_backend: Literal["postgres", "memory"] = "postgres"
    log_level: str = "INFO"


def load_app_config() -> AppConfig:
    """Load application configuration from environment variables."""
    return AppConfig(
        store_backend=os.getenv("STORE_BACKEND", "postgres").lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
