"""Application configuration pulled from environment variables via pydantic."""
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the WBGT signal cache service."""
    model_config = SettingsConfigDict(env_prefix="WBGT_", extra="ignore")

    station_id: str = "62091"
    feed_url_template: str = "https://www.wbgt.env.go.jp/prev15WG/dl/yohou_{station_id}.csv"
    request_timeout_seconds: float = 10.0
    store_backend: str = "memory"  # options: memory, redis
    redis_url: str | None = None
    key_prefix: str = "WBGT_"
    ttl_seconds: int = 86400
    cors_allow_origins: List[str] = ["*"]
    cache_max_age_seconds: int = 300
    log_level: str = "INFO"

    @field_validator("station_id", mode="after")
    @classmethod
    def strip_station(cls, v: str) -> str:
        """Stations arrive from env files with stray whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("station_id must not be empty")
        return v

    @field_validator("feed_url_template", mode="after")
    @classmethod
    def require_station_placeholder(cls, v: str) -> str:
        """The template is formatted per station, so it must carry the placeholder."""
        if "{station_id}" not in v:
            raise ValueError("feed_url_template must contain '{station_id}'")
        return v


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
