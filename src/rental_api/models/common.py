"""Shared API response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rental_core.models import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
]


class MessageResponse(BaseModel):
    """Acknowledgement for operations without a data payload."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )


class HealthResponse(BaseModel):
    """Liveness probe result."""

    model_config = ConfigDict(strict=True)

    status: str = "ok"
    timestamp: datetime
    service: str = "rental-booking-api"
