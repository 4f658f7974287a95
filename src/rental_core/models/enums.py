"""Enumeration types for rental booking data models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Status of a payment record."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    LOCAL = "local"


class PaymentProvider(str, Enum):
    """Who settles the payment."""

    LOCAL = "local"
    RAZORPAY = "razorpay"


class SettlementMode(str, Enum):
    """Whether payments resolve in-process or through an external gateway."""

    LOCAL = "local"
    GATEWAY = "gateway"


class BillingFrequency(str, Enum):
    """How often an add-on service is billed."""

    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class UserRole(str, Enum):
    """Role of the authenticated principal."""

    TENANT = "tenant"
    ADMIN = "admin"
