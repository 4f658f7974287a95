"""Booking lifecycle rules.

pending -> confirmed -> active <-> paused, active -> completed, and any
non-terminal status -> cancelled. Cancelled and completed are terminal.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict

from rental_core.models import (
    Booking,
    BookingError,
    BookingStatus,
    ErrorCode,
    PauseRecord,
    Property,
)
from rental_core.utils.dates import add_months, whole_months_between

TERMINAL_STATES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.ACTIVE, BookingStatus.CANCELLED}),
    BookingStatus.ACTIVE: frozenset(
        {BookingStatus.PAUSED, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
    ),
    BookingStatus.PAUSED: frozenset({BookingStatus.ACTIVE, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class ExtensionPlan(BaseModel):
    """Outcome of an extension request before it is written."""

    model_config = ConfigDict(frozen=True)

    duration_months: int
    check_out: dt.date
    total_price: int


class BookingStateMachine:
    """Legal status transitions and their side effects on a booking."""

    @staticmethod
    def allowed_targets(status: BookingStatus) -> frozenset[BookingStatus]:
        """Statuses reachable from `status` in one step."""
        return TRANSITIONS[status]

    @staticmethod
    def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
        """Whether `current` may move directly to `target`."""
        return target in TRANSITIONS[current]

    def apply_transition(
        self,
        booking: Booking,
        target: BookingStatus,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Return a copy of the booking moved to ``target``.

        Pausing appends an open pause record; resuming closes the last one.
        The input booking is not modified.

        Raises:
            BookingError: INVALID_STATE_TRANSITION if the move is not allowed
        """
        if not self.can_transition(booking.status, target):
            raise BookingError(
                ErrorCode.INVALID_STATE_TRANSITION,
                details={
                    "from": booking.status.value,
                    "to": target.value,
                },
            )

        now = now or dt.datetime.now(dt.UTC)
        history = list(booking.pause_history)

        if target == BookingStatus.PAUSED:
            history.append(PauseRecord(paused_at=now))
        elif booking.status == BookingStatus.PAUSED and target == BookingStatus.ACTIVE:
            if history and history[-1].resumed_at is None:
                history[-1] = history[-1].model_copy(update={"resumed_at": now})

        return booking.model_copy(
            update={
                "status": target,
                "pause_history": history,
                "updated_at": now,
            }
        )

    def plan_extension(
        self,
        booking: Booking,
        prop: Property,
        new_check_out: dt.date,
    ) -> ExtensionPlan:
        """Work out the new length, end date and price of an extension.

        The new length is the number of whole calendar months from
        check-in to the requested date. Add-ons are not re-priced; the
        total becomes monthly rent for the new length plus the deposit.

        Raises:
            BookingError: INVALID_STATE_TRANSITION for terminal bookings,
                INVALID_INPUT if the booking would not get longer
        """
        if booking.status in TERMINAL_STATES:
            raise BookingError(
                ErrorCode.INVALID_STATE_TRANSITION,
                details={"status": booking.status.value, "action": "extend"},
            )

        new_duration = whole_months_between(booking.check_in, new_check_out)
        if new_duration <= booking.duration_months:
            raise BookingError(
                ErrorCode.INVALID_INPUT,
                details={
                    "new_check_out": (
                        f"must add at least one whole month; current length is "
                        f"{booking.duration_months} months"
                    )
                },
            )

        return ExtensionPlan(
            duration_months=new_duration,
            check_out=add_months(booking.check_in, new_duration),
            total_price=prop.monthly_rate * new_duration + prop.security_deposit,
        )
