import os
from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()

class Settings(BaseSettings):
    """
    Application settings.
    """

    # Application
    PROJECT_NAME: str = "Handoff API"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Co-parenting custody schedule and handoff reconciliation API"
    API_V1_STR: str = "/api/v1"

    # Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "a_random_secret_key_for_development")
    ALGORITHM: str = "HS256"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "capacitor://localhost",
        "http://localhost",
    ]

    # Database
    DB_USER: str = os.getenv("DB_USER", "")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: str = os.getenv("DB_PORT", "5432")
    DB_NAME: str = os.getenv("DB_NAME", "handoff")

    @property
    def DATABASE_URL(self) -> str:
        # URL-encode the username and password to handle special characters
        encoded_user = quote_plus(self.DB_USER)
        encoded_password = quote_plus(self.DB_PASSWORD)
        return f"postgresql+asyncpg://{encoded_user}:{encoded_password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Logging
    LOG_DIRECTORY: str = os.getenv("LOG_DIRECTORY", "logs")
    LOG_TIMEZONE: str = os.getenv("LOG_TIMEZONE", "US/Eastern")

    # Redis Cache Configuration
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_PASSWORD: Optional[str] = os.getenv("REDIS_PASSWORD")
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_MAX_CONNECTIONS: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "20"))
    REDIS_SOCKET_TIMEOUT: int = int(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))

    # Cache TTL settings (in seconds)
    CACHE_TTL_FAMILY_SNAPSHOT: int = int(os.getenv("CACHE_TTL_FAMILY_SNAPSHOT", "900"))  # 15 minutes

    # Custody schedule
    DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "America/New_York")
    DEFAULT_PARENT_LABEL: str = os.getenv("DEFAULT_PARENT_LABEL", "dad")
    SCHEDULE_LOOKBACK_DAYS: int = int(os.getenv("SCHEDULE_LOOKBACK_DAYS", "14"))
    SCHEDULE_LOOKAHEAD_DAYS: int = int(os.getenv("SCHEDULE_LOOKAHEAD_DAYS", "100"))

    # Event window loaded into a family snapshot
    EVENT_WINDOW_PAST_DAYS: int = int(os.getenv("EVENT_WINDOW_PAST_DAYS", "7"))
    EVENT_WINDOW_FUTURE_DAYS: int = int(os.getenv("EVENT_WINDOW_FUTURE_DAYS", "90"))

    # Reconciliation
    DROPOFF_OVERDUE_MINUTES: int = int(os.getenv("DROPOFF_OVERDUE_MINUTES", "15"))
    DROPOFF_LEAD_MINUTES: int = int(os.getenv("DROPOFF_LEAD_MINUTES", "30"))
    NEXT_HANDOFF_HORIZON_DAYS: int = int(os.getenv("NEXT_HANDOFF_HORIZON_DAYS", "14"))
    RECONCILE_TICK_SECONDS: int = int(os.getenv("RECONCILE_TICK_SECONDS", "60"))

    # Brief / recap
    BRIEF_MAX_DAYS: int = int(os.getenv("BRIEF_MAX_DAYS", "5"))

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"

settings = Settings()
