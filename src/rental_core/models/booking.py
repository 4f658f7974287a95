"""Booking model and the validated inputs that create or change one."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import BookingStatus


class PauseRecord(BaseModel):
    """One pause window of an active booking."""

    model_config = ConfigDict(strict=True)

    paused_at: datetime
    resumed_at: datetime | None = None


class Booking(BaseModel):
    """A tenant's reservation of a property for whole calendar months.

    Amounts are in paise. ``version`` increases on every write and guards
    conditional updates against lost writes.
    """

    model_config = ConfigDict(strict=True)

    booking_id: str = Field(..., description="Unique booking ID")
    property_id: str = Field(..., description="Reference to Property")
    tenant_id: str = Field(..., description="Reference to the tenant")
    check_in: date = Field(..., description="First day of the stay")
    check_out: date = Field(..., description="Day the stay ends (exclusive)")
    duration_months: int = Field(..., ge=1, description="Length in calendar months")
    total_price: int = Field(..., ge=0, description="Total charge in paise")
    status: BookingStatus = Field(..., description="Lifecycle status")
    add_on_ids: list[str] = Field(default_factory=list)
    payment_id: str | None = Field(default=None, description="Linked Payment")
    notes: str | None = Field(default=None, max_length=1000)
    pause_history: list[PauseRecord] = Field(default_factory=list)
    cancellation_reason: str | None = None
    version: int = Field(default=1, ge=1)
    created_at: datetime
    updated_at: datetime


class BookingCreate(BaseModel):
    """Validated input for creating a booking."""

    model_config = ConfigDict(strict=True)

    tenant_id: str = Field(..., min_length=1)
    property_id: str = Field(..., min_length=1)
    check_in: date
    duration_months: int = Field(..., ge=1)
    add_on_ids: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=1000)
