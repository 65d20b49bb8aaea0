"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for required variables.
"""
from decimal import Decimal

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Local defaults are safe for development only; production must override
    the JWT secret and the connection URLs in .env.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # CORS: comma separated (e.g. http://localhost:3000,https://directrent.gh). Empty = default list in main.
    cors_origins: str = ""

    # ===========================================
    # DATABASE
    # ===========================================
    database_url: str = "sqlite:///./directrent.db"
    db_connect_timeout: int = 5
    # Lock waits / deadlocks are retried this many times in total before giving up.
    consistency_retry_attempts: int = 2

    # ===========================================
    # REDIS & CELERY
    # ===========================================
    redis_url: str = "redis://localhost:6379/0"
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"

    # ===========================================
    # AUTH (JWT bearer)
    # ===========================================
    jwt_secret_key: str = "dev-secret-key-directrent-ghana"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60 * 24 * 7

    # ===========================================
    # CONTACT UNLOCK QUOTA (units per cycle; SUPERUSER is unlimited)
    # ===========================================
    quota_free_ceiling: int = 3
    quota_basic_ceiling: int = 15
    quota_relax_ceiling: int = 40
    # Rolling cycle length for the reset sweep. 0 = resets only via explicit event.
    quota_cycle_days: int = 30
    # Upgrade prompt prices (GH₵)
    subscription_price_basic: int = 50
    subscription_price_relax: int = 100
    subscription_price_superuser: int = 200
    currency_symbol: str = "GH₵"

    # ===========================================
    # PAYOUTS
    # ===========================================
    payout_min_amount: Decimal = Decimal("10")
    payout_max_amount: Decimal = Decimal("5000")
    payout_account_number_min_length: int = 10
    payout_account_name_min_length: int = 3
    payout_settlement_delay_seconds: int = 5
    payout_overdue_sweep_seconds: int = 60
    # A PROCESSING claim older than this is treated as abandoned by its worker.
    payout_processing_timeout_seconds: int = 300

    # ===========================================
    # LOGGING
    # ===========================================
    request_id_header: str = "X-Request-Id"
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("quota_free_ceiling", "quota_basic_ceiling", "quota_relax_ceiling")
    @classmethod
    def validate_ceiling(cls, v: int) -> int:
        """Ceilings are unit counts."""
        if v < 0:
            raise ValueError("quota ceilings must be >= 0")
        return v

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v in ("changeme", "secret", "password"):
            raise ValueError("jwt_secret_key is too weak, please change it")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
