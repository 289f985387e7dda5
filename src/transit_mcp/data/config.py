from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedConfig(BaseSettings):
    """Configuration for the static GTFS feed engine.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    feed_dir: Path = Field(default=Path("data/gtfs"), alias="GTFS_FEED_DIR")
    nearby_radius_meters: float = Field(default=1000, alias="GTFS_NEARBY_RADIUS")

    # shapes are re-read from disk on a cache miss
    shape_cache_ttl_seconds: int = Field(default=300, alias="GTFS_SHAPE_CACHE_TTL")
    shape_cache_size: int = Field(default=16, alias="GTFS_SHAPE_CACHE_SIZE")

    placeholder_fare: float = Field(default=2.50, alias="GTFS_PLACEHOLDER_FARE")


@lru_cache
def get_feed_config() -> FeedConfig:
    """Get feed configuration (cached singleton).

    Returns:
        FeedConfig with values from .env file or environment variables.
    """
    return FeedConfig()
