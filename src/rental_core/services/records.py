"""Conversions between domain models and DynamoDB items.

Dates and timestamps are stored as ISO strings, amounts as integers.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any

from rental_core.models import (
    AddOnService,
    BillingFrequency,
    Booking,
    BookingStatus,
    PauseRecord,
    Payment,
    PaymentMethod,
    PaymentProvider,
    PaymentStatus,
    Property,
)

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

BOOKINGS_TABLE = "bookings"
PAYMENTS_TABLE = "payments"
TENANT_INDEX = "tenant_id-index"
ORDER_INDEX = "order_id-index"


def _parse_dt(value: str | None) -> dt.datetime | None:
    return dt.datetime.fromisoformat(value) if value else None


def booking_to_item(booking: Booking) -> dict[str, Any]:
    """Convert Booking model to DynamoDB item."""
    item: dict[str, Any] = {
        "booking_id": booking.booking_id,
        "property_id": booking.property_id,
        "tenant_id": booking.tenant_id,
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "duration_months": booking.duration_months,
        "total_price": booking.total_price,
        "status": booking.status.value,
        "add_on_ids": list(booking.add_on_ids),
        "pause_history": [pause_to_item(p) for p in booking.pause_history],
        "version": booking.version,
        "created_at": booking.created_at.isoformat(),
        "updated_at": booking.updated_at.isoformat(),
    }
    if booking.payment_id:
        item["payment_id"] = booking.payment_id
    if booking.notes:
        item["notes"] = booking.notes
    if booking.cancellation_reason:
        item["cancellation_reason"] = booking.cancellation_reason
    return item


def pause_to_item(record: PauseRecord) -> dict[str, Any]:
    item = {"paused_at": record.paused_at.isoformat()}
    if record.resumed_at:
        item["resumed_at"] = record.resumed_at.isoformat()
    return item


def item_to_booking(item: dict[str, Any]) -> Booking:
    """Convert DynamoDB item to Booking model."""
    return Booking(
        booking_id=item["booking_id"],
        property_id=item["property_id"],
        tenant_id=item["tenant_id"],
        check_in=dt.date.fromisoformat(item["check_in"]),
        check_out=dt.date.fromisoformat(item["check_out"]),
        duration_months=int(item["duration_months"]),
        total_price=int(item["total_price"]),
        status=BookingStatus(item["status"]),
        add_on_ids=list(item.get("add_on_ids", [])),
        payment_id=item.get("payment_id"),
        notes=item.get("notes"),
        pause_history=[
            PauseRecord(
                paused_at=dt.datetime.fromisoformat(p["paused_at"]),
                resumed_at=_parse_dt(p.get("resumed_at")),
            )
            for p in item.get("pause_history", [])
        ],
        cancellation_reason=item.get("cancellation_reason"),
        version=int(item.get("version", 1)),
        created_at=dt.datetime.fromisoformat(item["created_at"]),
        updated_at=dt.datetime.fromisoformat(item["updated_at"]),
    )


def payment_to_item(payment: Payment) -> dict[str, Any]:
    """Convert Payment model to DynamoDB item."""
    item: dict[str, Any] = {
        "payment_id": payment.payment_id,
        "booking_id": payment.booking_id,
        "tenant_id": payment.tenant_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "method": payment.method.value,
        "status": payment.status.value,
        "provider": payment.provider.value,
        "created_at": payment.created_at.isoformat(),
    }
    if payment.order_id:
        item["order_id"] = payment.order_id
    if payment.external_payment_id:
        item["external_payment_id"] = payment.external_payment_id
    if payment.external_transaction_id:
        item["external_transaction_id"] = payment.external_transaction_id
    if payment.completed_at:
        item["completed_at"] = payment.completed_at.isoformat()
    return item


def item_to_payment(item: dict[str, Any]) -> Payment:
    """Convert DynamoDB item to Payment model."""
    return Payment(
        payment_id=item["payment_id"],
        booking_id=item["booking_id"],
        tenant_id=item["tenant_id"],
        amount=int(item["amount"]),
        currency=item.get("currency", "INR"),
        method=PaymentMethod(item["method"]),
        status=PaymentStatus(item["status"]),
        provider=PaymentProvider(item["provider"]),
        order_id=item.get("order_id"),
        external_payment_id=item.get("external_payment_id"),
        external_transaction_id=item.get("external_transaction_id"),
        created_at=dt.datetime.fromisoformat(item["created_at"]),
        completed_at=_parse_dt(item.get("completed_at")),
    )


def item_to_property(item: dict[str, Any]) -> Property:
    """Convert DynamoDB item to Property model."""
    return Property(
        property_id=item["property_id"],
        monthly_rate=int(item["monthly_rate"]),
        security_deposit=int(item.get("security_deposit", 0)),
        title=item.get("title"),
    )


def item_to_add_on(item: dict[str, Any]) -> AddOnService:
    """Convert DynamoDB item to AddOnService model."""
    # is_active may be stored as a string by older seed data
    is_active_raw = item.get("is_active", True)
    if isinstance(is_active_raw, str):
        is_active = is_active_raw.lower() == "true"
    else:
        is_active = bool(is_active_raw)

    return AddOnService(
        addon_id=item["addon_id"],
        name=item.get("name", ""),
        price=int(item["price"]),
        billing_frequency=BillingFrequency(item.get("billing_frequency", "one-time")),
        is_active=is_active,
    )


def versioned_booking_put(db: "DynamoDBService", booking: Booking) -> dict[str, Any]:
    """Put a booking whose version was bumped by one since it was read.

    The write is cancelled if anyone else changed the booking in between.
    """
    return db.build_put(
        BOOKINGS_TABLE,
        booking_to_item(booking),
        condition_expression="#v = :expected",
        expression_names={"#v": "version"},
        expression_values={":expected": booking.version - 1},
    )
