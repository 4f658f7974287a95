"""Catalog records consumed read-only by the booking core."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import BillingFrequency


class Property(BaseModel):
    """A rentable property as seen by the booking core.

    Amounts are integers in the smallest currency unit (paise).
    """

    model_config = ConfigDict(strict=True)

    property_id: str = Field(..., description="Unique property ID")
    monthly_rate: int = Field(..., ge=0, description="Rent per calendar month")
    security_deposit: int = Field(default=0, ge=0, description="Refundable deposit")
    title: str | None = Field(default=None, description="Display title")


class AddOnService(BaseModel):
    """An optional service that can be priced into a booking."""

    model_config = ConfigDict(strict=True)

    addon_id: str = Field(..., description="Unique add-on ID")
    name: str = Field(default="", description="Display name")
    price: int = Field(..., ge=0, description="Price per billing period")
    billing_frequency: BillingFrequency = Field(
        default=BillingFrequency.ONE_TIME,
        description="one-time, weekly or monthly",
    )
    is_active: bool = True
