"""Runtime settings loaded from environment."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./data/rooms_booking.db"

    # JWT issued by the identity provider, HS256 shared secret
    secret_key: SecretStr = SecretStr("secure-secret-key-1234567890")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    notification_url: str = "http://localhost:8000/notifications/booking"
    notification_api_key: SecretStr = SecretStr("local-notification-key")
    notification_timeout: float = 10.0

    log_level: str = "INFO"

    # Bookable hours used by the free slot listing (UTC)
    working_day_start_hour: int = 8
    working_day_end_hour: int = 18

    model_config = SettingsConfigDict(env_prefix="ROOMBOOKING_", env_file=".env")


@lru_cache
def get_settings() -> Settings:
    return Settings()
