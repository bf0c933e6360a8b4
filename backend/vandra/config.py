from pydantic_settings import BaseSettings
from functools import lru_cache

DEFAULT_JWT_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./data/vandra.db"

    scheduler_enabled: bool = True
    monitor_interval_hours: int = 6

    amadeus_api_key: str = ""
    amadeus_api_secret: str = ""
    amadeus_base_url: str = "https://test.api.amadeus.com"

    ai_provider: str = "anthropic"
    ai_api_key: str = ""
    ai_base_url: str = ""
    ai_model: str = ""

    auth_jwt_secret: str = DEFAULT_JWT_SECRET
    auth_jwt_alg: str = "HS256"
    session_max_age_days: int = 30

    # Batch trigger credentials
    cron_secret: str = ""
    internal_api_key: str = ""

    provider_min_interval_seconds: float = 1.0
    alert_batch_delay_seconds: float = 3.0

    fallback_origin_code: str = "SLC"
    default_currency: str = "USD"

    record_deal_notifications: bool = True
    default_notification_channel: str = "email"

    def model_post_init(self, __context):
        if self.env == "prod" and self.database_url.startswith("sqlite"):
            raise ValueError(
                "Production requires explicit DATABASE_URL (not SQLite)"
            )
        if self.env == "prod" and self.auth_jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError(
                "Production requires an explicit AUTH_JWT_SECRET"
            )

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
