"""
stdcapture Configuration Module.

One settings class per concern, each with its own environment prefix:

    STDCAPTURE_LOG_*        root level, stream capture, file layout
    STDCAPTURE_ROTATION_*   rotating file sink

Usage:
    from stdcapture.config import settings

    settings.logging.level
    settings.rotation.directory
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import LoggingSettings
from .rotation import RotationSettings


class Settings(BaseSettings):
    """Composite settings aggregating the logging and rotation domains."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()

    @cached_property
    def rotation(self) -> RotationSettings:
        return RotationSettings()


settings = Settings()

__all__ = ["LoggingSettings", "RotationSettings", "Settings", "settings"]
