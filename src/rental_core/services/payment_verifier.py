"""Payment confirmation via gateway signature check.

The gateway signs ``order_id|payment_id`` with the merchant secret
(HMAC-SHA256, hex). A matching signature completes the pending payment
and confirms its booking in one transaction.
"""

import datetime as dt
import hashlib
import hmac
from typing import TYPE_CHECKING

from rental_core.models import (
    Booking,
    BookingError,
    BookingStatus,
    ErrorCode,
    Payment,
    PaymentStatus,
)
from rental_core.utils.logging import get_logger, log_payment_operation

from .records import (
    BOOKINGS_TABLE,
    ORDER_INDEX,
    PAYMENTS_TABLE,
    item_to_booking,
    item_to_payment,
    versioned_booking_put,
)
from .state_machine import BookingStateMachine

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Hex HMAC-SHA256 of ``order_id|payment_id``."""
    return hmac.new(
        secret.encode(),
        f"{order_id}|{payment_id}".encode(),
        hashlib.sha256,
    ).hexdigest()


class PaymentVerifier:
    """Service for verifying gateway payment confirmations."""

    def __init__(
        self,
        db: "DynamoDBService",
        secret: str | None,
        state_machine: BookingStateMachine | None = None,
    ) -> None:
        """Initialize payment verifier.

        Args:
            db: DynamoDB service instance
            secret: Gateway signing secret; None disables verification
            state_machine: Lifecycle rules for the linked booking
        """
        self.db = db
        self._secret = secret
        self.state_machine = state_machine or BookingStateMachine()

    def check_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Constant-time comparison against the expected signature."""
        if not self._secret:
            return False
        expected = compute_signature(self._secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode(), signature.encode("utf-8"))

    def find_by_order(self, order_id: str) -> Payment | None:
        """Locate the payment opened for a gateway order.

        The index lookup is re-read from the base table so the status
        reflects the latest write.
        """
        items = self.db.query_by_gsi(PAYMENTS_TABLE, ORDER_INDEX, "order_id", order_id)
        if not items:
            return None

        item = self.db.get_item(
            PAYMENTS_TABLE,
            {"payment_id": items[0]["payment_id"]},
            consistent_read=True,
        )
        return item_to_payment(item) if item else None

    def verify(self, order_id: str, payment_id: str, signature: str) -> Payment:
        """Verify a payment confirmation and complete the payment.

        Repeating a successful verification returns the stored payment
        without writing.

        Args:
            order_id: Gateway order id
            payment_id: Gateway payment id
            signature: Hex signature supplied by the client

        Returns:
            The completed Payment

        Raises:
            BookingError: INVALID_INPUT for missing fields or when
                verification is not configured, INVALID_SIGNATURE on
                mismatch, NOT_FOUND for an unknown order, CONFLICT if the
                order was already completed by another payment,
                INVALID_STATE_TRANSITION if the booking can no longer be
                confirmed, INTERNAL_FAILURE if the commit keeps failing
        """
        missing = {
            name: "required"
            for name, value in (
                ("order_id", order_id),
                ("payment_id", payment_id),
                ("signature", signature),
            )
            if not value
        }
        if missing:
            raise BookingError(ErrorCode.INVALID_INPUT, details=missing)

        if not self._secret:
            raise BookingError(
                ErrorCode.INVALID_INPUT,
                details={"payment": "payment verification is not enabled"},
            )

        if not self.check_signature(order_id, payment_id, signature):
            log_payment_operation(
                logger,
                "verify_signature",
                order_id=order_id,
                error="signature mismatch",
            )
            raise BookingError(ErrorCode.INVALID_SIGNATURE)

        payment = self.find_by_order(order_id)
        if payment is None:
            raise BookingError(ErrorCode.NOT_FOUND, details={"order_id": order_id})

        already_done = self._already_verified(payment, payment_id)
        if already_done is not None:
            return already_done

        if payment.status != PaymentStatus.PENDING:
            raise BookingError(
                ErrorCode.INVALID_STATE_TRANSITION,
                details={"payment_status": payment.status.value},
            )

        booking = self._load_booking(payment.booking_id)
        now = dt.datetime.now(dt.UTC)
        completed = payment.model_copy(
            update={
                "status": PaymentStatus.COMPLETED,
                "external_payment_id": payment_id,
                "completed_at": now,
            }
        )

        transact_items = [
            self.db.build_update(
                PAYMENTS_TABLE,
                {"payment_id": payment.payment_id},
                "SET #s = :completed, external_payment_id = :ext, completed_at = :at",
                condition_expression="#s = :pending",
                expression_names={"#s": "status"},
                expression_values={
                    ":completed": PaymentStatus.COMPLETED.value,
                    ":pending": PaymentStatus.PENDING.value,
                    ":ext": payment_id,
                    ":at": now.isoformat(),
                },
            )
        ]

        confirmed = self._confirm(booking, now)
        if confirmed is not None:
            transact_items.append(versioned_booking_put(self.db, confirmed))

        if not self.db.transact_write(transact_items):
            # Lost a race: either a duplicate verification or a booking change
            current = self.find_by_order(order_id)
            if current is not None:
                already_done = self._already_verified(current, payment_id)
                if already_done is not None:
                    return already_done
            log_payment_operation(
                logger,
                "verify_payment",
                payment_id=payment.payment_id,
                booking_id=payment.booking_id,
                order_id=order_id,
                error="transaction cancelled",
            )
            raise BookingError(
                ErrorCode.CONFLICT,
                details={"booking_id": payment.booking_id},
            )

        log_payment_operation(
            logger,
            "verify_payment",
            payment_id=payment.payment_id,
            booking_id=payment.booking_id,
            order_id=order_id,
            amount=payment.amount,
            status=PaymentStatus.COMPLETED.value,
        )
        return completed

    def _already_verified(self, payment: Payment, external_payment_id: str) -> Payment | None:
        if payment.status != PaymentStatus.COMPLETED:
            return None
        if payment.external_payment_id == external_payment_id:
            return payment
        raise BookingError(
            ErrorCode.CONFLICT,
            details={"order_id": payment.order_id or "", "reason": "order already paid"},
        )

    def _load_booking(self, booking_id: str) -> Booking:
        item = self.db.get_item(
            BOOKINGS_TABLE, {"booking_id": booking_id}, consistent_read=True
        )
        if not item:
            raise BookingError(ErrorCode.NOT_FOUND, details={"booking_id": booking_id})
        return item_to_booking(item)

    def _confirm(self, booking: Booking, now: dt.datetime) -> Booking | None:
        """Confirmed copy of a pending booking, or None if it is already past pending."""
        if booking.status == BookingStatus.PENDING:
            confirmed = self.state_machine.apply_transition(
                booking, BookingStatus.CONFIRMED, now
            )
            return confirmed.model_copy(update={"version": booking.version + 1})

        if not self.state_machine.allowed_targets(booking.status):
            raise BookingError(
                ErrorCode.INVALID_STATE_TRANSITION,
                details={"booking_status": booking.status.value},
            )
        return None
