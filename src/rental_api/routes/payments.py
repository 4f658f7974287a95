"""Payment endpoints.

Payments are created with their booking (POST /api/bookings); this
router only exposes them for reading.
"""

from fastapi import APIRouter, Depends

from rental_api.dependencies import get_booking_manager
from rental_api.models.common import ErrorResponse
from rental_api.security import get_principal
from rental_core.models import Payment, Principal
from rental_core.services.booking import BookingTransactionManager

router = APIRouter(tags=["payments"])


@router.get(
    "/payments/{payment_id}",
    summary="Get payment by ID",
    description="""
Get a payment record. Amounts are in paise.

Only the paying tenant or an admin can read a payment.
""",
    response_model=Payment,
    responses={
        401: {"description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Not the paying tenant"},
        404: {"model": ErrorResponse, "description": "Payment not found"},
    },
)
async def get_payment(
    payment_id: str,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
) -> Payment:
    return manager.get_payment(payment_id, principal)
