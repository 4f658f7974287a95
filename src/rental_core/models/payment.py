"""Payment model for booking settlement records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import PaymentMethod, PaymentProvider, PaymentStatus


class Payment(BaseModel):
    """The single payment attached to a booking.

    Amounts are stored in paise. Gateway payments start PENDING with an
    ``order_id`` and are completed by signature verification.
    """

    model_config = ConfigDict(strict=True)

    payment_id: str = Field(..., description="Unique payment ID")
    booking_id: str = Field(..., description="Reference to Booking")
    tenant_id: str = Field(..., description="Tenant who pays")
    amount: int = Field(..., ge=0, description="Amount in paise")
    currency: str = Field(default="INR", description="Currency code")
    method: PaymentMethod = Field(..., description="Payment method")
    status: PaymentStatus = Field(..., description="Payment status")
    provider: PaymentProvider = Field(..., description="Settlement provider")
    order_id: str | None = Field(
        default=None,
        description="External order reference (gateway settlement only)",
        examples=["order_NkX1aB2cD3eF4g"],
    )
    external_payment_id: str | None = Field(
        default=None,
        description="Gateway payment ID recorded on verification",
        examples=["pay_NkX9zY8wV7uT6s"],
    )
    external_transaction_id: str | None = Field(
        default=None,
        description="Transaction reference (synthetic for local settlement)",
    )
    created_at: datetime = Field(..., description="Creation timestamp")
    completed_at: datetime | None = Field(
        default=None, description="Completion timestamp"
    )


class PaymentOrder(BaseModel):
    """What a client needs to finish paying for a new booking.

    Local settlement reports ``paid=True``; gateway settlement returns the
    order id and public key for the checkout widget.
    """

    model_config = ConfigDict(strict=True)

    provider: PaymentProvider
    amount: int = Field(..., ge=0, description="Amount in paise")
    currency: str = "INR"
    paid: bool = False
    order_id: str | None = None
    key: str | None = Field(default=None, description="Public gateway key id")
