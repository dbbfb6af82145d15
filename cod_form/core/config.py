from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Identity ---
    PROJECT_NAME: str = "COD_Form"
    APP_NAME: str = "OnePik"
    PLATFORM_EMAIL_DOMAIN: str = "onepik.com"

    # --- Storage ---
    DATABASE_URL: str = "sqlite:///./cod_orders.db"
    REDIS_URL: str | None = None
    DB_CONNECT_RETRIES: int = 10
    DB_CONNECT_WAIT_SECONDS: int = 3

    # --- Quota ---
    # Month boundaries for the order quota are evaluated in this zone.
    TIMEZONE: str = "Asia/Kolkata"

    # --- Shopify Admin API ---
    SHOPIFY_API_VERSION: str = "2024-10"
    SHOPIFY_TIMEOUT_SECONDS: float = 5.0

    # --- Public widget settings ---
    SETTINGS_CACHE_TTL: int = 60

    # --- Admin ---
    ADMIN_API_KEY: str | None = None

    LOG_LEVEL: str = "INFO"

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # We explicitly add these so Pydantic knows they exist in .env
    POSTGRES_USER: str | None = None
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_DB: str | None = None

    # --- Configuration ---
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # docker-compose shares the .env with other services
    )

settings = Settings()
