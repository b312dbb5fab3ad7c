from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Ops_Dashboard"

    # --- Commerce Backend ---
    BACKEND_BASE_URL: str = "http://localhost:8080"
    BACKEND_TIMEOUT_SECONDS: float = 15.0
    # None keeps the detail fan-out unbounded
    ENRICH_MAX_CONCURRENCY: int | None = None

    # --- Tables & Rendering ---
    DEFAULT_PAGE_SIZE: int = 10
    RECENT_ORDERS_LIMIT: int = 10
    RECOMMENDATIONS_PAGE_SIZE: int = 5
    DISPLAY_TIMEZONE: str = "Asia/Kolkata"
    CURRENCY_SYMBOL: str = "₹"

    # --- Admin Session ---
    ADMIN_EMAIL: str = "admin@example.com"
    SESSION_TTL_SECONDS: int = 24 * 60 * 60
    SESSION_COOKIE_NAME: str = "admin_session"
    REDIS_URL: str | None = None
    AUTH_ENABLED: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
