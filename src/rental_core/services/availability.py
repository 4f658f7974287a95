"""Availability service for property occupancy.

Each property has a calendar partition in the ``booking-calendar`` table:
one entry per non-terminal booking holding its ``[check_in, check_out)``
range, plus a guard item whose ``version`` is bumped by every write that
adds or lengthens an entry. Writers read the partition with a strongly
consistent query, decide, and commit conditionally on the version they
read, so two overlapping bookings can never both be committed.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key
from pydantic import BaseModel, ConfigDict

from rental_core.models import Booking, BookingStatus

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

# Statuses that no longer hold dates
RELEASED_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})


class CalendarEntry(BaseModel):
    """Dates held by one non-terminal booking."""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    check_in: dt.date
    check_out: dt.date

    def overlaps(self, check_in: dt.date, check_out: dt.date) -> bool:
        """Half-open interval intersection."""
        return self.check_in < check_out and self.check_out > check_in


class CalendarSnapshot(BaseModel):
    """A property's calendar as read at one guard version."""

    model_config = ConfigDict(frozen=True)

    property_id: str
    version: int
    entries: tuple[CalendarEntry, ...] = ()

    def conflicts(
        self,
        check_in: dt.date,
        check_out: dt.date,
        exclude_booking_id: str | None = None,
    ) -> list[CalendarEntry]:
        return [
            e
            for e in self.entries
            if e.booking_id != exclude_booking_id and e.overlaps(check_in, check_out)
        ]

    def has_overlap(
        self,
        check_in: dt.date,
        check_out: dt.date,
        exclude_booking_id: str | None = None,
    ) -> bool:
        return bool(self.conflicts(check_in, check_out, exclude_booking_id))


class AvailabilityService:
    """Service for availability checks and calendar writes."""

    TABLE = "booking-calendar"
    GUARD_KEY = "#GUARD"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize availability service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def snapshot(self, property_id: str) -> CalendarSnapshot:
        """Read a property's calendar partition (strongly consistent).

        Args:
            property_id: Property to read

        Returns:
            CalendarSnapshot with the guard version (0 if never written)
        """
        items = self.db.query(
            self.TABLE,
            Key("property_id").eq(property_id),
            consistent_read=True,
        )

        version = 0
        entries: list[CalendarEntry] = []
        for item in items:
            if item["booking_id"] == self.GUARD_KEY:
                version = int(item.get("version", 0))
                continue
            entries.append(
                CalendarEntry(
                    booking_id=item["booking_id"],
                    check_in=dt.date.fromisoformat(item["check_in"]),
                    check_out=dt.date.fromisoformat(item["check_out"]),
                )
            )

        entries.sort(key=lambda e: e.check_in)
        return CalendarSnapshot(
            property_id=property_id, version=version, entries=tuple(entries)
        )

    def has_overlap(
        self,
        property_id: str,
        check_in: dt.date,
        check_out: dt.date,
        exclude_booking_id: str | None = None,
    ) -> bool:
        """Check whether a date range clashes with a non-terminal booking.

        Args:
            property_id: Property to check
            check_in: Proposed first day
            check_out: Proposed end day (exclusive)
            exclude_booking_id: Booking to ignore (when it is the one changing)

        Returns:
            True if any held range intersects ``[check_in, check_out)``
        """
        return self.snapshot(property_id).has_overlap(
            check_in, check_out, exclude_booking_id
        )

    # TransactWriteItem builders

    def guard_update(self, snapshot: CalendarSnapshot) -> dict[str, Any]:
        """Bump the guard version, conditional on it not having moved."""
        if snapshot.version == 0:
            condition = "attribute_not_exists(#v)"
            values: dict[str, Any] = {":next": 1}
        else:
            condition = "#v = :current"
            values = {":next": snapshot.version + 1, ":current": snapshot.version}

        return self.db.build_update(
            self.TABLE,
            {"property_id": snapshot.property_id, "booking_id": self.GUARD_KEY},
            "SET #v = :next",
            condition_expression=condition,
            expression_names={"#v": "version"},
            expression_values=values,
        )

    def entry_put(self, booking: Booking, *, replace: bool = False) -> dict[str, Any]:
        """Hold a booking's dates, or move an existing hold when replace=True."""
        return self.db.build_put(
            self.TABLE,
            {
                "property_id": booking.property_id,
                "booking_id": booking.booking_id,
                "check_in": booking.check_in.isoformat(),
                "check_out": booking.check_out.isoformat(),
            },
            condition_expression=(
                "attribute_exists(booking_id)"
                if replace
                else "attribute_not_exists(booking_id)"
            ),
        )

    def entry_delete(self, booking: Booking) -> dict[str, Any]:
        """Release a booking's dates."""
        return self.db.build_delete(
            self.TABLE,
            {"property_id": booking.property_id, "booking_id": booking.booking_id},
        )
