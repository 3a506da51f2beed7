"""
Rotating File Sink Configuration.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stdcapture.sinks import DEFAULT_BYTE_LIMIT, DEFAULT_FILE_COUNT


class RotationSettings(BaseSettings):
    """
    Rotating file sink configuration.

    No file sink is attached while ``directory`` is unset.
    """

    model_config = SettingsConfigDict(
        env_prefix="STDCAPTURE_ROTATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    directory: Path | None = Field(default=None, description="Existing directory holding the log generations")
    process_id: str = Field(default="process", min_length=1, description="File name stem")
    append: bool = Field(default=True, description="Continue the existing generation 0")
    byte_limit: int = Field(default=DEFAULT_BYTE_LIMIT, ge=0, description="Approximate bytes per generation")
    file_count: int = Field(default=DEFAULT_FILE_COUNT, ge=1, description="Number of generations")
