"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for available variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are enough for a local SQLite run; production sets DATABASE_URL,
    LEDGER_OWNER_ID and the payout backend explicitly.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # CORS: через запятую (например http://localhost:3000). Пусто = дефолтный список в коде.
    cors_origins: str = ""

    # ===========================================
    # DATABASE
    # ===========================================
    database_url: str = "sqlite:///./passledger.db"

    # ===========================================
    # LEDGER (значения при первом развёртывании)
    # ===========================================
    ledger_owner_id: str = "owner"
    pass_price: int = 100  # в минимальных единицах валюты
    pass_duration_days: int = 30
    # Заголовок, из которого API берёт идентификатор вызывающего
    caller_id_header: str = "X-Caller-Id"

    # ===========================================
    # TRANSFERS (refund / withdraw)
    # ===========================================
    transfer_backend: str = "memory"  # memory, http
    payout_api_url: str = "http://payouts:8002"
    payout_api_key: str | None = None
    http_client_timeout: float = 10.0

    # ===========================================
    # LOGGING
    # ===========================================
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("pass_price", "pass_duration_days")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Price and duration are unsigned."""
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("transfer_backend")
    @classmethod
    def validate_transfer_backend(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("memory", "http"):
            raise ValueError("transfer_backend must be 'memory' or 'http'")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Игнорировать неизвестные поля из .env


settings = Settings()
