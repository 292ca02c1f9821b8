from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # Database settings
    database_url: str = "sqlite:///./budget_tracker.db"
    ledger_timeout_seconds: float = 5.0  # PostgreSQL statement_timeout; SQLite lock-wait timeout

    # Alerting settings
    large_transaction_threshold: float = 1000.0
    on_track_ceiling: float = 50.0  # Below this percentage a budget is "on track"
    alert_dedup_enabled: bool = True

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
