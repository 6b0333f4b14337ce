"""Configuration for the whole application"""

from __future__ import annotations

import sys
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from onlyfans_downloader.src.domain.media import QualityTier
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
)
from onlyfans_downloader.src.infrastructure.yaml_configuration.sample_config import (
    DEFAULT_YAML_CONFIG_VALUE,
)


class UserSettings(BaseModel):
    """User preferences which can change while the page is open"""

    quality: QualityTier = QualityTier.full
    auto_create_folder: bool = True

    @field_validator('quality', mode='before')
    @classmethod
    def _parse_quality(cls, value: object) -> QualityTier:
        return QualityTier.parse(value)  # type: ignore[arg-type]


class DownloadSettings(BaseModel):
    """Settings for the downloading process"""

    target_directory: Path = Path('./onlyfans-downloads')
    cooldown_seconds: float = Field(default=0.1, ge=0)


class CorrelationStoreSettings(BaseModel):
    """Bounds of the in-memory correlation store"""

    capacity: int | None = Field(default=20000, gt=0)
    ttl_seconds: float | None = Field(default=None, gt=0)


class Timings(BaseModel):
    """Timers used by the page controller (seconds)"""

    debounce_seconds: float = 0.5
    resolution_retry_seconds: float = 2.0
    resolution_retry_attempts: int = 1
    content_poll_seconds: float = 1.0
    content_poll_attempts: int = 30
    route_poll_seconds: float = 1.0
    route_reinit_seconds: float = 1.0
    control_reset_seconds: float = 2.0
    navigation_settle_seconds: float = 0.1
    force_detection_seconds: float = 1.0


CONFIG_LOCATION: Path = Path('config.yaml')


class Config(BaseSettings):
    """General configuration with subsections"""

    model_config = SettingsConfigDict(
        yaml_file=CONFIG_LOCATION,
        yaml_file_encoding='utf-8',
    )

    settings: UserSettings = UserSettings()
    downloading_settings: DownloadSettings = DownloadSettings()
    correlation_store: CorrelationStoreSettings = CorrelationStoreSettings()
    timings: Timings = Timings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlConfigSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


def create_sample_config_file() -> None:
    """Create a sample config file (overwrites the existing one)."""
    with CONFIG_LOCATION.open(mode='w') as f:
        f.write(DEFAULT_YAML_CONFIG_VALUE)


def init_config() -> Config:
    """Load the config, create a sample and exit if it doesn't exist or is broken"""
    try:
        if not CONFIG_LOCATION.exists():
            create_sample_config_file()
            downloader_logger.error("Config doesn't exist")
            downloader_logger.success(
                f'Created a sample config file at {CONFIG_LOCATION.absolute()}',
            )
            downloader_logger.info('Review it and run the command again')
            sys.exit(1)

        return Config()

    except ValidationError as e:
        create_sample_config_file()
        downloader_logger.error('Config is invalid (could not be parsed)')
        downloader_logger.error(f'Validation error: {e}')
        downloader_logger.success(
            f'Recreated config at [green bold]{CONFIG_LOCATION.absolute()}[/green bold]',
        )
        sys.exit(1)
