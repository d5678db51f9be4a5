from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    processing_timezone: str = "UTC"
    log_level: str = "INFO"
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="COORD_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
