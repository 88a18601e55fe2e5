# cashai/config.py
# Process configuration loaded from the environment and .env

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the CashAI backend.

    Values come from environment variables (or a local ``.env`` file). List
    values such as ``ALLOWED_ORIGINS`` are given as JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "CashAI Backend"
    VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    # Database
    DATABASE_URL: str = "sqlite:///./cashai.db"

    # Session tokens
    JWT_SECRET: str = "change-this-jwt-secret-in-production"
    SESSION_TOKEN_EXPIRE_DAYS: int = Field(default=7, ge=1)

    # Fernet key for Plaid access tokens at rest; derived from JWT_SECRET if empty
    ACCESS_TOKEN_ENCRYPTION_KEY: str = ""

    # Plaid
    PLAID_CLIENT_ID: str = ""
    PLAID_SECRET: str = ""
    PLAID_ENV: Literal["sandbox", "production"] = "sandbox"
    PLAID_REDIRECT_URI: str = ""
    PLAID_CLIENT_NAME: str = "CashAI"
    PLAID_PRODUCTS: List[str] = Field(default_factory=lambda: ["auth", "transactions"])
    PLAID_COUNTRY_CODES: List[str] = Field(default_factory=lambda: ["US"])
    TRANSACTIONS_LOOKBACK_DAYS: int = Field(default=30, ge=1, le=730)
    TRANSACTIONS_PAGE_SIZE: int = Field(default=100, ge=1, le=500)

    # Mobile client deep link used after OAuth
    DEEP_LINK_SCHEME: str = "cashai"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance, created once per process."""
    return Settings()


settings = get_settings()
