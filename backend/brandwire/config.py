from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./data/brandwire.db"

    scheduler_enabled: bool = True
    rss_fetch_interval_minutes: int = 60
    rss_request_delay_seconds: float = 2.0
    rss_fetch_timeout_seconds: float = 30.0
    rss_user_agent: str = "Brandwire/1.0 (Brand Update Aggregator)"

    description_max_length: int = 500
    recent_updates_limit: int = 10

    timezone: str = "UTC"
    admin_token: str = ""

    def model_post_init(self, __context):
        if self.env == "prod" and self.database_url.startswith("sqlite"):
            raise ValueError(
                "Production requires explicit DATABASE_URL (not SQLite)"
            )

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
