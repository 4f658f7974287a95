"""API models for booking and payment confirmation endpoints.

Tenant identity is never part of a request body; it comes from the
authenticated principal.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from rental_core.models import Booking, BookingStatus, Payment, PaymentOrder


class BookingCreateRequest(BaseModel):
    """Request to book a property for whole calendar months."""

    model_config = ConfigDict(
        # strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "property_id": "PROP-001",
                    "check_in": "2024-01-15",
                    "months": 3,
                    "add_ons": ["ADDON-CLEANING"],
                    "notes": "Ground floor preferred",
                }
            ]
        },
    )

    property_id: str = Field(..., min_length=1, description="Property to book")
    check_in: date = Field(
        ...,
        description="First day of the stay (YYYY-MM-DD)",
        examples=["2024-01-15"],
    )
    months: int = Field(..., gt=0, description="Length in calendar months", examples=[3])
    add_ons: list[str] = Field(
        default_factory=list,
        description="Add-on service IDs; unknown IDs are ignored",
    )
    notes: str | None = Field(default=None, max_length=1000)


class BookingCreatedResponse(BaseModel):
    """A new booking plus what the client needs to pay for it."""

    model_config = ConfigDict(strict=True)

    booking: Booking
    payment_order: PaymentOrder


class PaymentVerificationRequest(BaseModel):
    """Gateway checkout result posted back by the client."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "order_id": "order_NkX1aB2cD3eF4g",
                    "payment_id": "pay_NkX9zY8wV7uT6s",
                    "signature": "5f0c1b...e9",
                }
            ]
        },
    )

    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class PaymentVerificationResponse(BaseModel):
    model_config = ConfigDict(strict=True)

    booking: Booking
    payment: Payment


class BookingCancelRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    reason: str | None = Field(default=None, max_length=500)


class BookingExtendRequest(BaseModel):
    """Request to lengthen a booking.

    The booking is extended by the whole months that fit before
    ``new_check_out``; the stored check-out is normalised to that length.
    """

    model_config = ConfigDict(strict=False)

    new_check_out: date = Field(..., description="Requested new end date (YYYY-MM-DD)")


class BookingStatusRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    status: BookingStatus


class BookingListResponse(BaseModel):
    """The caller's bookings, most recent first."""

    model_config = ConfigDict(strict=True)

    bookings: list[Booking]
    total_count: int = Field(..., ge=0)
