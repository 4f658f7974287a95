"""Runtime settings read from the environment.

Settings are loaded once per process through get_settings(); tests call
reset_settings() after changing environment variables.
"""

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rental_core.models.enums import SettlementMode


class Settings(BaseModel):
    """Configuration for the booking core and API."""

    model_config = ConfigDict(frozen=True)

    environment: str = "dev"
    table_prefix: str = "rental-dev"
    settlement_mode: SettlementMode = SettlementMode.LOCAL
    payment_currency: str = "INR"
    razorpay_key_id: str | None = None
    razorpay_key_secret: str | None = None
    notifications_enabled: bool = True
    notification_sender: str = "bookings@example.com"
    max_commit_attempts: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def _gateway_requires_key(self) -> "Settings":
        if self.settlement_mode == SettlementMode.GATEWAY and not self.razorpay_key_id:
            raise ValueError("SETTLEMENT_MODE=gateway requires RAZORPAY_KEY_ID")
        return self

    @property
    def gateway_secret_parameter(self) -> str:
        """SSM path holding the gateway signing secret."""
        return f"/rental/{self.environment}/razorpay/key_secret"

    @classmethod
    def from_env(cls) -> "Settings":
        environment = os.getenv("ENVIRONMENT", "dev")
        return cls(
            environment=environment,
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"rental-{environment}"),
            settlement_mode=SettlementMode(os.getenv("SETTLEMENT_MODE", "local").lower()),
            payment_currency=os.getenv("PAYMENT_CURRENCY", "INR"),
            razorpay_key_id=os.getenv("RAZORPAY_KEY_ID") or None,
            razorpay_key_secret=os.getenv("RAZORPAY_KEY_SECRET") or None,
            notifications_enabled=os.getenv("NOTIFICATIONS_ENABLED", "true").lower() == "true",
            notification_sender=os.getenv("NOTIFICATION_SENDER", "bookings@example.com"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings."""
    return Settings.from_env()


def reset_settings() -> None:
    """Drop cached settings (for testing only)."""
    get_settings.cache_clear()
