"""Booking endpoints.

Provides REST endpoints for:
- Creating a booking with its payment (local or gateway settlement)
- Confirming a gateway payment by signature
- Cancelling and extending bookings (owner or admin)
- Listing the caller's bookings and reading one booking
- Admin listing of every booking
- Admin status changes through the booking state machine

All endpoints require an authenticated principal (x-user-sub header set
by the upstream auth layer). Notification emails are sent after the
response as background tasks.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from starlette.status import HTTP_201_CREATED

from rental_api.dependencies import get_booking_manager, get_notification_service
from rental_api.models.bookings import (
    BookingCancelRequest,
    BookingCreatedResponse,
    BookingCreateRequest,
    BookingExtendRequest,
    BookingListResponse,
    BookingStatusRequest,
    PaymentVerificationRequest,
    PaymentVerificationResponse,
)
from rental_api.models.common import ErrorResponse, MessageResponse
from rental_api.security import get_principal
from rental_core.models import Booking, BookingStatus, Principal
from rental_core.services.booking import BookingTransactionManager
from rental_core.services.notification_service import NotificationService

router = APIRouter(tags=["bookings"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid request or state"},
    401: {"description": "Authentication required"},
    403: {"model": ErrorResponse, "description": "Not the booking owner"},
    404: {"model": ErrorResponse, "description": "Booking not found"},
}


@router.post(
    "/bookings",
    summary="Create booking",
    description="""
Book a property for whole calendar months.

The check-out date is check-in plus `months` calendar months (day clamped
to the end of shorter months). The price is the monthly rate times the
months plus add-ons: monthly add-ons are charged per month, others once.

**Settlement:**
- Local: the payment completes immediately and the booking is `confirmed`
  (`payment_order.paid` is true).
- Gateway: the booking stays `pending`; `payment_order` carries the gateway
  `order_id` and public `key` for checkout. Confirm with
  `POST /api/bookings/{booking_id}/verify`.
""",
    response_model=BookingCreatedResponse,
    status_code=HTTP_201_CREATED,
    responses={
        **_ERRORS,
        409: {"model": ErrorResponse, "description": "Dates overlap another booking"},
        500: {"model": ErrorResponse, "description": "Booking could not be saved"},
    },
)
async def create_booking(
    body: BookingCreateRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
    notifier: NotificationService = Depends(get_notification_service),
) -> BookingCreatedResponse:
    booking, payment = manager.create_booking(
        tenant_id=principal.tenant_id,
        property_id=body.property_id,
        check_in=body.check_in,
        duration_months=body.months,
        add_on_ids=body.add_ons,
        notes=body.notes,
    )
    background_tasks.add_task(notifier.booking_created, principal.email, booking)

    return BookingCreatedResponse(
        booking=booking,
        payment_order=manager.settlement.payment_order(payment),
    )


@router.get(
    "/bookings/my",
    summary="List my bookings",
    response_model=BookingListResponse,
    responses={401: {"description": "Authentication required"}},
)
async def list_my_bookings(
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
) -> BookingListResponse:
    bookings = manager.list_tenant_bookings(principal.tenant_id)
    return BookingListResponse(bookings=bookings, total_count=len(bookings))


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking by ID",
    response_model=Booking,
    responses=_ERRORS,
)
async def get_booking(
    booking_id: str,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
) -> Booking:
    """Get one booking. Owners see their own; admins see all."""
    return manager.get_booking(booking_id, principal)


@router.post(
    "/bookings/{booking_id}/verify",
    summary="Confirm gateway payment",
    description="""
Verify the gateway's checkout result for a pending booking.

The signature must be the hex HMAC-SHA256 of `order_id|payment_id` under
the merchant secret. On success the payment is completed and the booking
moves to `confirmed` in one transaction. Repeating a successful call
returns the same result.
""",
    response_model=PaymentVerificationResponse,
    responses={
        **_ERRORS,
        409: {"model": ErrorResponse, "description": "Order already paid"},
    },
)
async def verify_payment(
    booking_id: str,
    body: PaymentVerificationRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
    notifier: NotificationService = Depends(get_notification_service),
) -> PaymentVerificationResponse:
    booking, payment = manager.confirm_payment(
        booking_id,
        principal,
        order_id=body.order_id,
        payment_id=body.payment_id,
        signature=body.signature,
    )
    if booking.status == BookingStatus.CONFIRMED:
        background_tasks.add_task(notifier.booking_confirmed, principal.email, booking)

    return PaymentVerificationResponse(booking=booking, payment=payment)


@router.put(
    "/bookings/{booking_id}/cancel",
    summary="Cancel booking",
    response_model=MessageResponse,
    responses=_ERRORS,
)
async def cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    body: BookingCancelRequest | None = None,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
    notifier: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    """Cancel a booking and release its dates.

    Cancelled and completed bookings cannot be cancelled again.
    """
    booking = manager.cancel_booking(
        booking_id, principal, reason=body.reason if body else None
    )
    background_tasks.add_task(notifier.booking_cancelled, principal.email, booking)

    return MessageResponse(message=f"Booking {booking_id} cancelled")


@router.put(
    "/bookings/{booking_id}/extend",
    summary="Extend booking",
    description="""
Lengthen a booking to the whole calendar months before `new_check_out`.

The request is rejected (400) unless it adds at least one whole month.
The new total is the monthly rate times the new length plus the security
deposit; add-ons are not re-priced.
""",
    response_model=Booking,
    responses={
        **_ERRORS,
        409: {"model": ErrorResponse, "description": "New dates overlap another booking"},
    },
)
async def extend_booking(
    booking_id: str,
    body: BookingExtendRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
    notifier: NotificationService = Depends(get_notification_service),
) -> Booking:
    booking = manager.extend_booking(booking_id, principal, body.new_check_out)
    background_tasks.add_task(notifier.booking_extended, principal.email, booking)
    return booking


@router.put(
    "/bookings/{booking_id}/status",
    summary="Change booking status (admin)",
    response_model=Booking,
    responses=_ERRORS,
)
async def change_booking_status(
    booking_id: str,
    body: BookingStatusRequest,
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
) -> Booking:
    """Move a booking along its lifecycle (e.g. confirmed -> active)."""
    return manager.change_status(booking_id, body.status, principal)


@router.get(
    "/admin/bookings",
    summary="List all bookings (admin)",
    response_model=BookingListResponse,
    responses={
        401: {"description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Admin role required"},
    },
)
async def list_all_bookings(
    principal: Principal = Depends(get_principal),
    manager: BookingTransactionManager = Depends(get_booking_manager),
) -> BookingListResponse:
    """Every booking across tenants, most recent first."""
    bookings = manager.list_bookings(principal)
    return BookingListResponse(bookings=bookings, total_count=len(bookings))
