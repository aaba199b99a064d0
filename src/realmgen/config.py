"""Process-level settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from realmgen.models import MapSize, MapType


class Settings(BaseSettings):
    """Settings loaded from ``REALMGEN_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REALMGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "info"

    # Defaults for the command line when no flags are given
    default_map_type: MapType = MapType.ISLAND
    default_map_size: MapSize = MapSize.REGIONAL


settings = Settings()
