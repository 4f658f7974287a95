"""API routes package.

- bookings: Booking lifecycle and payment confirmation
- payments: Payment lookup

All routers are registered in main.py with /api prefix.
"""

from rental_api.routes.bookings import router as bookings_router
from rental_api.routes.payments import router as payments_router

__all__ = [
    "bookings_router",
    "payments_router",
]
