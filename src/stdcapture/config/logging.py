"""
Logging Configuration.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stdcapture.levels import parse_level


class LoggingSettings(BaseSettings):
    """Root level, stream capture switch and plain text layout."""

    model_config = SettingsConfigDict(
        env_prefix="STDCAPTURE_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: int = Field(default=20, description="Minimum level (name such as INFO or STDOUT, or a number)")
    redirect_streams: bool = Field(default=False, description="Capture sys.stdout/sys.stderr into the logger")
    timestamp_format: str = Field(default="%Y-%m-%d %H:%M:%S", description="File timestamp format")
    level_width: int = Field(default=8, description="File level column width")
    logger_width: int = Field(default=32, description="File logger column width")
    separator: str = Field(default=" | ", description="File column separator")

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: object) -> int:
        return parse_level(value)
