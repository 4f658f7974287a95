"""Booking transaction manager.

Creates bookings together with their payment in one DynamoDB transaction
and applies later changes (cancel, extend, status moves, payment
confirmation) as version-conditioned writes. Commits cancelled by a
concurrent writer are retried from a fresh read.
"""

import datetime as dt
import uuid
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, TypeVar

from botocore.exceptions import ClientError
from pydantic import ValidationError

from rental_core.models import (
    Booking,
    BookingCreate,
    BookingError,
    BookingStatus,
    ErrorCode,
    Payment,
    PaymentStatus,
    Principal,
)
from rental_core.utils.dates import add_months
from rental_core.utils.logging import get_logger, log_booking_operation

from .payment_gateway import PaymentGatewayError
from .records import (
    BOOKINGS_TABLE,
    PAYMENTS_TABLE,
    TENANT_INDEX,
    booking_to_item,
    item_to_booking,
    item_to_payment,
    payment_to_item,
    versioned_booking_put,
)
from .state_machine import TERMINAL_STATES, BookingStateMachine

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .catalog import CatalogService
    from .dynamodb import DynamoDBService
    from .payment_gateway import SettlementStrategy
    from .payment_verifier import PaymentVerifier
    from .pricing import PricingService

logger = get_logger(__name__)

T = TypeVar("T")


def _generate_booking_id() -> str:
    return f"BKG-{uuid.uuid4().hex[:12].upper()}"


def _validation_details(error: ValidationError) -> dict[str, str]:
    return {
        ".".join(str(p) for p in err["loc"]) or "request": err["msg"]
        for err in error.errors()
    }


class BookingTransactionManager:
    """Service orchestrating availability, pricing, payment and lifecycle."""

    def __init__(
        self,
        db: "DynamoDBService",
        catalog: "CatalogService",
        pricing: "PricingService",
        availability: "AvailabilityService",
        settlement: "SettlementStrategy",
        state_machine: BookingStateMachine | None = None,
        verifier: "PaymentVerifier | None" = None,
        max_commit_attempts: int = 3,
    ) -> None:
        """Initialize the transaction manager.

        Args:
            db: DynamoDB service instance
            catalog: Property and add-on lookups
            pricing: Price calculation
            availability: Calendar reads and writes
            settlement: How new payments are settled (local or gateway)
            state_machine: Lifecycle rules
            verifier: Gateway payment verification, if enabled
            max_commit_attempts: Commits tried before giving up
        """
        self.db = db
        self.catalog = catalog
        self.pricing = pricing
        self.availability = availability
        self.settlement = settlement
        self.state_machine = state_machine or BookingStateMachine()
        self.verifier = verifier
        self.max_commit_attempts = max_commit_attempts

    # Reads

    def get_booking(self, booking_id: str, principal: Principal | None = None) -> Booking:
        """Get a booking, checking the caller may see it.

        Raises:
            BookingError: NOT_FOUND, or UNAUTHORIZED for another tenant's booking
        """
        booking = self._load_booking(booking_id)
        if principal is not None:
            self._authorize(principal, booking)
        return booking

    def list_tenant_bookings(self, tenant_id: str) -> list[Booking]:
        """Get a tenant's bookings, most recent first."""
        items = self.db.query_by_gsi(
            BOOKINGS_TABLE,
            TENANT_INDEX,
            "tenant_id",
            tenant_id,
            scan_index_forward=False,
        )
        return [item_to_booking(item) for item in items]

    def list_bookings(self, principal: Principal) -> list[Booking]:
        """Get every booking, most recent first (admin only).

        Raises:
            BookingError: UNAUTHORIZED for non-admins
        """
        if not principal.is_admin:
            raise BookingError(ErrorCode.UNAUTHORIZED)

        # Scan is acceptable for the admin view
        bookings = [item_to_booking(item) for item in self.db.scan(BOOKINGS_TABLE)]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    def get_payment(self, payment_id: str, principal: Principal | None = None) -> Payment:
        """Get a payment, checking the caller may see it."""
        item = self.db.get_item(PAYMENTS_TABLE, {"payment_id": payment_id})
        if not item:
            raise BookingError(ErrorCode.NOT_FOUND, details={"payment_id": payment_id})

        payment = item_to_payment(item)
        if principal is not None and not principal.can_manage(payment.tenant_id):
            raise BookingError(ErrorCode.UNAUTHORIZED)
        return payment

    # Creation

    def create_booking(
        self,
        tenant_id: str,
        property_id: str,
        check_in: dt.date,
        duration_months: int,
        add_on_ids: Iterable[str] = (),
        notes: str | None = None,
    ) -> tuple[Booking, Payment]:
        """Create a booking and its payment atomically.

        Args:
            tenant_id: Tenant making the booking
            property_id: Property to book
            check_in: First day of the stay
            duration_months: Length in calendar months (>= 1)
            add_on_ids: Requested add-on services; unknown IDs are skipped
            notes: Free-text notes

        Returns:
            The committed (Booking, Payment) pair. The booking is confirmed
            when the payment settled locally and pending otherwise.

        Raises:
            BookingError: INVALID_INPUT, NOT_FOUND, CONFLICT or INTERNAL_FAILURE
        """
        try:
            request = BookingCreate(
                tenant_id=tenant_id,
                property_id=property_id,
                check_in=check_in,
                duration_months=duration_months,
                add_on_ids=list(add_on_ids),
                notes=notes,
            )
        except ValidationError as e:
            raise BookingError(
                ErrorCode.INVALID_INPUT, details=_validation_details(e)
            ) from e

        prop = self.catalog.get_property(request.property_id)
        if prop is None:
            raise BookingError(
                ErrorCode.NOT_FOUND, details={"property_id": request.property_id}
            )

        add_ons = self.pricing.resolve_add_ons(request.add_on_ids)
        total_price = self.pricing.compute_price(
            prop.monthly_rate, request.duration_months, add_ons
        )
        check_out = add_months(request.check_in, request.duration_months)
        booking_id = _generate_booking_id()
        payment: Payment | None = None

        def attempt() -> tuple[Booking, Payment] | None:
            nonlocal payment
            snapshot = self.availability.snapshot(request.property_id)
            if snapshot.has_overlap(request.check_in, check_out):
                log_booking_operation(
                    logger,
                    "create_booking",
                    property_id=request.property_id,
                    error="dates overlap an existing booking",
                    check_in=request.check_in.isoformat(),
                    check_out=check_out.isoformat(),
                )
                raise BookingError(
                    ErrorCode.CONFLICT,
                    details={
                        "check_in": request.check_in.isoformat(),
                        "check_out": check_out.isoformat(),
                    },
                )

            now = dt.datetime.now(dt.UTC)
            if payment is None:
                # Opened once; a retried commit reuses the same order
                payment = self._settle(booking_id, request.tenant_id, total_price, now)

            booking = Booking(
                booking_id=booking_id,
                property_id=request.property_id,
                tenant_id=request.tenant_id,
                check_in=request.check_in,
                check_out=check_out,
                duration_months=request.duration_months,
                total_price=total_price,
                status=BookingStatus.PENDING,
                add_on_ids=[a.addon_id for a in add_ons],
                payment_id=payment.payment_id,
                notes=request.notes,
                created_at=now,
                updated_at=now,
            )
            if payment.status == PaymentStatus.COMPLETED:
                booking = self.state_machine.apply_transition(
                    booking, BookingStatus.CONFIRMED, now
                )

            committed = self._transact(
                [
                    self.availability.guard_update(snapshot),
                    self.availability.entry_put(booking),
                    self.db.build_put(
                        BOOKINGS_TABLE,
                        booking_to_item(booking),
                        condition_expression="attribute_not_exists(booking_id)",
                    ),
                    self.db.build_put(
                        PAYMENTS_TABLE,
                        payment_to_item(payment),
                        condition_expression="attribute_not_exists(payment_id)",
                    ),
                ]
            )
            return (booking, payment) if committed else None

        booking, committed_payment = self._commit_with_retries("create_booking", attempt)
        log_booking_operation(
            logger,
            "create_booking",
            booking_id=booking.booking_id,
            property_id=booking.property_id,
            status=booking.status.value,
            total_price=booking.total_price,
            payment_id=committed_payment.payment_id,
        )
        return booking, committed_payment

    # Changes to existing bookings

    def cancel_booking(
        self,
        booking_id: str,
        principal: Principal,
        reason: str | None = None,
    ) -> Booking:
        """Cancel a booking and release its dates.

        Raises:
            BookingError: NOT_FOUND, UNAUTHORIZED, or INVALID_STATE_TRANSITION
                if the booking is already cancelled or completed
        """

        def attempt() -> Booking | None:
            booking = self._load_booking(booking_id)
            self._authorize(principal, booking)

            cancelled = self.state_machine.apply_transition(
                booking, BookingStatus.CANCELLED
            ).model_copy(
                update={
                    "cancellation_reason": reason,
                    "version": booking.version + 1,
                }
            )
            committed = self._transact(
                [
                    versioned_booking_put(self.db, cancelled),
                    self.availability.entry_delete(cancelled),
                ]
            )
            return cancelled if committed else None

        cancelled = self._commit_with_retries("cancel_booking", attempt)
        log_booking_operation(
            logger,
            "cancel_booking",
            booking_id=booking_id,
            property_id=cancelled.property_id,
            status=cancelled.status.value,
        )
        return cancelled

    def extend_booking(
        self,
        booking_id: str,
        principal: Principal,
        new_check_out: dt.date,
    ) -> Booking:
        """Lengthen a booking to the whole months before ``new_check_out``.

        Raises:
            BookingError: NOT_FOUND, UNAUTHORIZED, INVALID_STATE_TRANSITION
                for terminal bookings, INVALID_INPUT if the booking would
                not get longer, CONFLICT if the new dates clash
        """

        def attempt() -> Booking | None:
            booking = self._load_booking(booking_id)
            self._authorize(principal, booking)

            prop = self.catalog.get_property(booking.property_id)
            if prop is None:
                raise BookingError(
                    ErrorCode.NOT_FOUND, details={"property_id": booking.property_id}
                )

            plan = self.state_machine.plan_extension(booking, prop, new_check_out)
            snapshot = self.availability.snapshot(booking.property_id)
            if snapshot.has_overlap(
                booking.check_in, plan.check_out, exclude_booking_id=booking_id
            ):
                raise BookingError(
                    ErrorCode.CONFLICT,
                    details={
                        "check_in": booking.check_in.isoformat(),
                        "check_out": plan.check_out.isoformat(),
                    },
                )

            extended = booking.model_copy(
                update={
                    "duration_months": plan.duration_months,
                    "check_out": plan.check_out,
                    "total_price": plan.total_price,
                    "version": booking.version + 1,
                    "updated_at": dt.datetime.now(dt.UTC),
                }
            )
            committed = self._transact(
                [
                    self.availability.guard_update(snapshot),
                    self.availability.entry_put(extended, replace=True),
                    versioned_booking_put(self.db, extended),
                ]
            )
            return extended if committed else None

        extended = self._commit_with_retries("extend_booking", attempt)
        log_booking_operation(
            logger,
            "extend_booking",
            booking_id=booking_id,
            property_id=extended.property_id,
            status=extended.status.value,
            duration_months=extended.duration_months,
            total_price=extended.total_price,
        )
        return extended

    def change_status(
        self,
        booking_id: str,
        target: BookingStatus,
        principal: Principal,
    ) -> Booking:
        """Move a booking to another status (admin only).

        Moving into a terminal status releases the booking's dates. A
        booking only becomes confirmed once its payment has completed.

        Raises:
            BookingError: UNAUTHORIZED for non-admins, NOT_FOUND, or
                INVALID_STATE_TRANSITION
        """
        if not principal.is_admin:
            raise BookingError(ErrorCode.UNAUTHORIZED)

        def attempt() -> Booking | None:
            booking = self._load_booking(booking_id)
            if target == BookingStatus.CONFIRMED:
                self._require_completed_payment(booking)
            moved = self.state_machine.apply_transition(booking, target).model_copy(
                update={"version": booking.version + 1}
            )

            transact_items = [versioned_booking_put(self.db, moved)]
            if target in TERMINAL_STATES:
                transact_items.append(self.availability.entry_delete(moved))

            return moved if self._transact(transact_items) else None

        moved = self._commit_with_retries("change_status", attempt)
        log_booking_operation(
            logger,
            "change_status",
            booking_id=booking_id,
            property_id=moved.property_id,
            status=moved.status.value,
        )
        return moved

    def confirm_payment(
        self,
        booking_id: str,
        principal: Principal,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> tuple[Booking, Payment]:
        """Verify a gateway confirmation for one of the caller's bookings.

        Raises:
            BookingError: INVALID_INPUT if verification is disabled or the
                order belongs to another booking, plus everything
                PaymentVerifier.verify raises
        """
        if self.verifier is None:
            raise BookingError(
                ErrorCode.INVALID_INPUT,
                details={"payment": "payment verification is not enabled"},
            )

        booking = self.get_booking(booking_id, principal)
        if not booking.payment_id:
            raise BookingError(
                ErrorCode.INVALID_INPUT, details={"booking_id": "booking has no payment"}
            )

        linked = self.get_payment(booking.payment_id)
        if linked.order_id != order_id:
            raise BookingError(
                ErrorCode.INVALID_INPUT,
                details={"order_id": "order does not belong to this booking"},
            )

        payment = self.verifier.verify(order_id, payment_id, signature)
        return self._load_booking(booking_id), payment

    # Internals

    def _settle(
        self,
        booking_id: str,
        tenant_id: str,
        amount: int,
        now: dt.datetime,
    ) -> Payment:
        try:
            return self.settlement.settle(
                booking_id=booking_id,
                tenant_id=tenant_id,
                amount=amount,
                now=now,
            )
        except PaymentGatewayError as e:
            log_booking_operation(
                logger, "create_booking", booking_id=booking_id, error=str(e)
            )
            raise BookingError(
                ErrorCode.INTERNAL_FAILURE, details={"payment": "gateway unavailable"}
            ) from e

    def _require_completed_payment(self, booking: Booking) -> None:
        item = None
        if booking.payment_id:
            item = self.db.get_item(
                PAYMENTS_TABLE, {"payment_id": booking.payment_id}, consistent_read=True
            )
        if not item or item_to_payment(item).status != PaymentStatus.COMPLETED:
            raise BookingError(
                ErrorCode.INVALID_STATE_TRANSITION,
                details={"payment": "booking payment has not completed"},
            )

    def _load_booking(self, booking_id: str) -> Booking:
        item = self.db.get_item(
            BOOKINGS_TABLE, {"booking_id": booking_id}, consistent_read=True
        )
        if not item:
            raise BookingError(ErrorCode.NOT_FOUND, details={"booking_id": booking_id})
        return item_to_booking(item)

    @staticmethod
    def _authorize(principal: Principal, booking: Booking) -> None:
        if not principal.can_manage(booking.tenant_id):
            raise BookingError(ErrorCode.UNAUTHORIZED)

    def _transact(self, items: list[dict]) -> bool:
        """Commit; False when a condition cancelled the transaction."""
        try:
            return self.db.transact_write(items)
        except ClientError as e:
            logger.error("Booking commit failed: %s", e)
            raise BookingError(ErrorCode.INTERNAL_FAILURE) from e

    def _commit_with_retries(self, operation: str, attempt: Callable[[], T | None]) -> T:
        for n in range(1, self.max_commit_attempts + 1):
            result = attempt()
            if result is not None:
                return result
            logger.warning(
                "%s commit cancelled by a concurrent write (attempt %d/%d)",
                operation,
                n,
                self.max_commit_attempts,
            )

        log_booking_operation(logger, operation, error="commit attempts exhausted")
        raise BookingError(
            ErrorCode.INTERNAL_FAILURE,
            details={"reason": "too many concurrent updates, try again"},
        )
