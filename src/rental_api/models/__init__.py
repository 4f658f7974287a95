"""API-specific request/response models.

Domain models (Booking, Payment, PaymentOrder) live in rental_core.models
and are reused here as response fields.

Modules:
- common: Shared response wrappers
- bookings: Booking and payment confirmation request/response models
"""

__all__: list[str] = []
