"""Pricing breakdown models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import BillingFrequency


class AddOnCharge(BaseModel):
    """Contribution of one add-on to a booking total."""

    model_config = ConfigDict(strict=True)

    addon_id: str
    billing_frequency: BillingFrequency
    unit_price: int = Field(..., ge=0)
    amount: int = Field(..., ge=0)


class PriceQuote(BaseModel):
    """Itemised price of a booking, all amounts in paise."""

    model_config = ConfigDict(strict=True)

    monthly_rate: int = Field(..., ge=0)
    duration_months: int = Field(..., ge=1)
    base_amount: int = Field(..., ge=0)
    add_on_charges: list[AddOnCharge] = Field(default_factory=list)
    total_amount: int = Field(..., ge=0)
