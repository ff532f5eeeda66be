from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Municipal Portal API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/municipal_portal.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Bearer tokens issued by the portal's auth provider
    AUTH_JWT_SECRET: str = "change-me"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_TOKEN_TTL_MINUTES: int = 60

    # Finix gateway
    finix_application_id: str = ""
    finix_api_secret: str = ""
    finix_environment: str = "sandbox"  # "sandbox" or "live"
    finix_api_version: str = "2022-02-01"
    finix_webhook_secret: str = ""
    gateway_timeout_seconds: float = 30.0

    # Fee schedule used when a merchant has no fee profile
    default_card_basis_points: int = 250
    default_card_fixed_fee_cents: int = 50
    default_ach_basis_points: int = 20
    default_ach_fixed_fee_cents: int = 50
    default_ach_fee_cap_cents: int | None = None

    # Payments
    currency: str = "USD"
    payment_amount_tolerance_cents: int = 1
    payment_reconciliation_after_minutes: int = 30

    # Facility opening hours are wall-clock times in this zone
    facility_timezone: str = "UTC"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def finix_base_url(self) -> str:
        if self.finix_environment == "live":
            return "https://finix.payments-api.com"
        return "https://finix.sandbox-payments-api.com"


settings = Settings()
