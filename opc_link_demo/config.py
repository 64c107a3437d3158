from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Demo configuration loaded from environment variables."""

    api_base_url: str = Field(default="http://localhost:9990/opc/api/v1", alias="API_BASE_URL")
    request_timeout: float = Field(default=10.0, alias="API_TIMEOUT")
    log_level: str = Field(default="WARNING", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
