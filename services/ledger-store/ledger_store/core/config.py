"""
Ledger Store — Configuration
"""
from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "ledger-store"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8006

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Snapshot persistence ──────────────────────────────────
    SNAPSHOT_BACKEND: Literal["redis", "file", "memory"] = "file"
    SNAPSHOT_DIR: str = ".ledger"
    SNAPSHOT_KEY_PREFIX: str = "coffee-"

    # ── Seed defaults (used when a snapshot entry is absent) ──
    STARTING_BALANCE: Decimal = Decimal("25.00")
    WELCOME_CARD_CODE: str = "WELCOME2023"
    WELCOME_CARD_AMOUNT: Decimal = Decimal("15.00")
    WELCOME_CARD_VALID_DAYS: int = 90

    # ── Ledger policy ─────────────────────────────────────────
    REFUND_CUTOFF_MINUTES: int = 30
    ASAP_LEAD_MINUTES: int = 20
    PICKUP_SLOT_MINUTES: int = 15
    PICKUP_CLOSING_HOUR: int = 22
    GIFT_CARD_VALID_DAYS: int = 365
    MIN_GIFT_CARD_AMOUNT: Decimal = Decimal("5.00")

    # ── User profile (single user) ────────────────────────────
    USER_NAME: str = "Coffee Lover"
    USER_EMAIL: str = "coffee@example.com"
    LOYALTY_POINTS: int = 230
    FAVORITE_LOCATION: str = "Downtown Cafe"

    # ── Notifications ─────────────────────────────────────────
    TOAST_CHANNEL: str = "ledger:toasts"
    TOAST_HISTORY_SIZE: int = 50

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
