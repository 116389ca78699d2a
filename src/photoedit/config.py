"""
Configuration management for the photoedit core.

Uses pydantic-settings for environment-based configuration with validation.
All settings can be overridden via environment variables with PHOTOEDIT_ prefix.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

# Hard bounds for the admission cap; set_max_concurrent_jobs clamps to these.
MIN_CONCURRENT_JOBS = 1
MAX_CONCURRENT_JOBS = 10


class PresetFileFormat(str, Enum):
    """Serialization formats for custom preset export."""

    JSON = "json"
    YAML = "yaml"


class BatchSettings(BaseSettings):
    """Settings for the batch scheduler."""

    model_config = SettingsConfigDict(env_prefix="PHOTOEDIT_BATCH_")

    # Admission
    max_concurrent_jobs: int = Field(
        default=3, ge=MIN_CONCURRENT_JOBS, le=MAX_CONCURRENT_JOBS
    )

    # Files processed at once inside a single job (1 = strictly sequential)
    file_workers: int = Field(default=1, ge=1, le=32)

    default_job_name: str = Field(default="Batch export")


class ExportDefaults(BaseSettings):
    """Default encoder parameters for exports, thumbnails and previews."""

    model_config = SettingsConfigDict(env_prefix="PHOTOEDIT_EXPORT_")

    format: str = Field(default="jpeg")
    quality: int = Field(default=90, ge=1, le=100)

    thumbnail_size: int = Field(default=300, ge=16, le=2048)
    thumbnail_quality: int = Field(default=80, ge=1, le=100)

    preview_max_dimension: int = Field(default=1920, ge=64, le=16384)
    preview_quality: int = Field(default=85, ge=1, le=100)

    histogram_max_dimension: int = Field(default=512, ge=16, le=4096)


class PresetSettings(BaseSettings):
    """Settings for the preset library."""

    model_config = SettingsConfigDict(env_prefix="PHOTOEDIT_PRESET_")

    presets_file: Optional[Path] = Field(default=None)
    export_format: PresetFileFormat = Field(default=PresetFileFormat.JSON)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings."""

    model_config = SettingsConfigDict(
        env_prefix="PHOTOEDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    app_name: str = Field(default="PhotoEdit")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Data directories
    data_dir: Path = Field(default=Path.home() / ".photoedit")

    # Subsettings
    batch: BatchSettings = Field(default_factory=BatchSettings)
    export: ExportDefaults = Field(default_factory=ExportDefaults)
    presets: PresetSettings = Field(default_factory=PresetSettings)

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.presets.presets_file:
            self.presets.presets_file.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance - lazy loaded
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure(settings: Optional[Settings] = None, **kwargs) -> Settings:
    """
    Configure the global settings.

    Args:
        settings: Optional Settings instance to use directly
        **kwargs: Settings overrides

    Returns:
        The configured Settings instance
    """
    global _settings
    if settings is not None:
        _settings = settings
    elif kwargs:
        _settings = Settings(**kwargs)
    else:
        _settings = Settings()
    return _settings
