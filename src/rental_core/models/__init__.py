"""Pydantic models for rental booking data entities."""

from .auth import Principal
from .booking import Booking, BookingCreate, PauseRecord
from .enums import (
    BillingFrequency,
    BookingStatus,
    PaymentMethod,
    PaymentProvider,
    PaymentStatus,
    SettlementMode,
    UserRole,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    BookingError,
    ErrorCode,
    ErrorResponse,
)
from .payment import Payment, PaymentOrder
from .pricing import AddOnCharge, PriceQuote
from .property import AddOnService, Property

__all__ = [
    # Enums
    "BillingFrequency",
    "BookingStatus",
    "PaymentMethod",
    "PaymentProvider",
    "PaymentStatus",
    "SettlementMode",
    "UserRole",
    # Auth
    "Principal",
    # Booking
    "Booking",
    "BookingCreate",
    "PauseRecord",
    # Payment
    "Payment",
    "PaymentOrder",
    # Pricing
    "AddOnCharge",
    "PriceQuote",
    # Catalog
    "AddOnService",
    "Property",
    # Errors
    "BookingError",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
]
