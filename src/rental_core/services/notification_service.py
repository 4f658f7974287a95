"""Outbound booking emails through Amazon SES.

Sending is fire-and-forget: failures are logged and never reach the
caller, so a booking is never rolled back because an email bounced.
"""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from rental_core.models import Booking, BookingStatus

logger = logging.getLogger(__name__)


def _rupees(paise: int) -> str:
    return f"INR {paise // 100:,}.{paise % 100:02d}"


class NotificationService:
    """Service for sending booking notifications by email."""

    def __init__(self, sender: str, enabled: bool = True) -> None:
        """Initialize notification service.

        Args:
            sender: Verified SES source address
            enabled: When False, messages are logged instead of sent
        """
        self.sender = sender
        self.enabled = enabled
        self._client = boto3.client("ses") if enabled else None

    def send(self, recipient: str | None, subject: str, body: str) -> bool:
        """Send a plain-text email.

        Returns:
            True if SES accepted the message
        """
        if not recipient:
            logger.debug("No recipient for %r, skipping", subject)
            return False
        if not self.enabled or self._client is None:
            logger.info("Notifications disabled; would send %r to %s", subject, recipient)
            return False

        try:
            self._client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [recipient]},
                Message={
                    "Subject": {"Data": subject},
                    "Body": {"Text": {"Data": body}},
                },
            )
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning("Failed to send %r to %s: %s", subject, recipient, e)
            return False

    def booking_created(self, recipient: str | None, booking: Booking) -> bool:
        if booking.status == BookingStatus.CONFIRMED:
            next_step = "Your payment is complete and the booking is confirmed."
        else:
            next_step = "Complete the payment to confirm your booking."
        return self.send(
            recipient,
            f"Booking {booking.booking_id} received",
            (
                f"Your booking of property {booking.property_id} from "
                f"{booking.check_in.isoformat()} to {booking.check_out.isoformat()} "
                f"({booking.duration_months} months) has been created.\n"
                f"Total: {_rupees(booking.total_price)}\n"
                f"{next_step}"
            ),
        )

    def booking_confirmed(self, recipient: str | None, booking: Booking) -> bool:
        return self.send(
            recipient,
            f"Booking {booking.booking_id} confirmed",
            (
                f"We received your payment of {_rupees(booking.total_price)}. "
                f"Your stay starts on {booking.check_in.isoformat()}."
            ),
        )

    def booking_cancelled(self, recipient: str | None, booking: Booking) -> bool:
        reason = f"\nReason: {booking.cancellation_reason}" if booking.cancellation_reason else ""
        return self.send(
            recipient,
            f"Booking {booking.booking_id} cancelled",
            f"Your booking of property {booking.property_id} has been cancelled.{reason}",
        )

    def booking_extended(self, recipient: str | None, booking: Booking) -> bool:
        return self.send(
            recipient,
            f"Booking {booking.booking_id} extended",
            (
                f"Your stay now ends on {booking.check_out.isoformat()} "
                f"({booking.duration_months} months).\n"
                f"New total: {_rupees(booking.total_price)}"
            ),
        )
