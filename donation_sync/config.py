"""
Configuration management for Food Donation Sync
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

# Values shipped in sample .env files; treated the same as "not configured"
PLACEHOLDER_API_KEY = "demo-api-key"
PLACEHOLDER_PROJECT_ID = "demo-project"


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Food Donation Sync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Relational store (canonical records)
    DATABASE_URL: str = "sqlite:///./food_donation.db"

    # Real-time mirror (Firebase Realtime Database)
    FIREBASE_API_KEY: str = ""
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_DATABASE_URL: str = ""  # defaults to https://<project>-default-rtdb.firebaseio.com
    FIREBASE_AUTH_TOKEN: str = ""    # database secret or ID token, sent as ?auth=
    MIRROR_TIMEOUT_SECONDS: float = 10.0

    # Sync behaviour
    ANALYTICS_CACHE_SECONDS: float = 30.0
    DEFAULT_LEAD_DAYS: int = 7  # expiry / needed-by default offset

    # HTTP
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def mirror_configured(self) -> bool:
        """False when either Firebase flag is missing or still a placeholder"""
        return (
            bool(self.FIREBASE_API_KEY)
            and self.FIREBASE_API_KEY != PLACEHOLDER_API_KEY
            and bool(self.FIREBASE_PROJECT_ID)
            and self.FIREBASE_PROJECT_ID != PLACEHOLDER_PROJECT_ID
        )

    @property
    def firebase_database_url(self) -> Optional[str]:
        if self.FIREBASE_DATABASE_URL:
            return self.FIREBASE_DATABASE_URL.rstrip("/")
        if self.FIREBASE_PROJECT_ID:
            return f"https://{self.FIREBASE_PROJECT_ID}-default-rtdb.firebaseio.com"
        return None


@lru_cache()
def get_settings() -> Settings:
    return Settings()
