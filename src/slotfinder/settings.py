"""Engine-wide settings loaded from the environment."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

JSON_LOG_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
TEXT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SLOTFINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Slot query rules
    min_custom_duration: int = 5  # shortest duration a caller may request
    default_max_capacity: int = 1  # used when neither schedule nor type sets one


@lru_cache
def get_settings() -> EngineSettings:
    """Get engine settings (singleton)."""
    return EngineSettings()


def configure_logging(settings: Optional[EngineSettings] = None, verbose: bool = False) -> None:
    """Configure root logging from settings.

    Args:
        settings: Settings to use (defaults to ``get_settings()``).
        verbose: Force DEBUG level regardless of settings.
    """
    settings = settings or get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=JSON_LOG_FORMAT if settings.log_json else TEXT_LOG_FORMAT,
    )
