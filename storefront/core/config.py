# storefront/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars in production (.env):
      - DATABASE_URL (Postgres connection string; SQLite file by default)
      - JWT_SECRET (signs customer access tokens)
      - ADMIN_JWT_SECRET (signs admin access tokens)

    Optional:
      - STRIPE_SECRET_KEY (only needed for payment_method='stripe')
      - DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD (seeded at startup)
    """

    PROJECT_NAME: str = "Storefront API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Token namespaces: customers and admins are signed with different secrets
    JWT_SECRET: str = "change-me"
    ADMIN_JWT_SECRET: str = "change-me-admin"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # bcrypt work factor
    BCRYPT_ROUNDS: int = 12

    DEFAULT_ADMIN_EMAIL: str | None = "admin@shopee.com"
    DEFAULT_ADMIN_PASSWORD: str | None = None

    # Stripe
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_CURRENCY: str = "vnd"

    # Administrative-division directory (province -> district -> ward)
    ADDRESS_API_BASE_URL: str = "https://provinces.open-api.vn/api"
    ADDRESS_API_TIMEOUT: float = 10.0
    ADDRESS_API_RETRIES: int = 3
    ADDRESS_API_RETRY_DELAY: float = 1.0

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
