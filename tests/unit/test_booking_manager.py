"""Unit tests for BookingTransactionManager."""

from datetime import date
from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from rental_core.models import (
    BookingError,
    BookingStatus,
    ErrorCode,
    PaymentProvider,
    PaymentStatus,
)
from rental_core.services.booking import BookingTransactionManager
from rental_core.services.payment_gateway import PaymentGatewayError


class TestCreateBooking:
    def test_local_settlement_confirms_booking(self, manager: BookingTransactionManager) -> None:
        booking, payment = manager.create_booking(
            "tenant-a", "PROP-001", date(2024, 1, 15), 3
        )

        assert booking.check_out == date(2024, 4, 15)
        assert booking.total_price == 60000
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.payment_id == payment.payment_id
        assert booking.version == 1

        assert payment.status == PaymentStatus.COMPLETED
        assert payment.provider == PaymentProvider.LOCAL
        assert payment.amount == 60000
        assert payment.booking_id == booking.booking_id
        assert payment.external_transaction_id.startswith("local_")

    def test_persists_booking_and_payment(self, manager: BookingTransactionManager) -> None:
        booking, payment = manager.create_booking(
            "tenant-a", "PROP-001", date(2024, 1, 15), 3, notes="Top floor"
        )

        assert manager.get_booking(booking.booking_id) == booking
        assert manager.get_payment(payment.payment_id) == payment

    def test_monthly_add_on_priced_per_month(self, manager: BookingTransactionManager) -> None:
        booking, _ = manager.create_booking(
            "tenant-a", "PROP-001", date(2024, 1, 15), 3, add_on_ids=["ADDON-CLEAN"]
        )
        assert booking.total_price == 63000

    def test_unknown_add_on_skipped(self, manager: BookingTransactionManager) -> None:
        booking, _ = manager.create_booking(
            "tenant-a", "PROP-001", date(2024, 1, 15), 1, add_on_ids=["ADDON-MOVE", "ADDON-NOPE"]
        )

        assert booking.add_on_ids == ["ADDON-MOVE"]
        assert booking.total_price == 20000 + 2500

    def test_month_end_check_in_is_clamped(self, manager: BookingTransactionManager) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 31), 1)
        assert booking.check_out == date(2024, 2, 29)

    def test_gateway_settlement_leaves_booking_pending(
        self, gateway_manager: BookingTransactionManager, fake_gateway: MagicMock
    ) -> None:
        booking, payment = gateway_manager.create_booking(
            "tenant-a", "PROP-001", date(2024, 1, 15), 3
        )

        assert booking.status == BookingStatus.PENDING
        assert payment.status == PaymentStatus.PENDING
        assert payment.order_id == f"order_{booking.booking_id}"
        fake_gateway.create_order.assert_called_once_with(60000, "INR", booking.booking_id)

    def test_unknown_property(self, manager: BookingTransactionManager) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-a", "PROP-404", date(2024, 1, 15), 3)
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    @pytest.mark.parametrize("months", [0, -2])
    def test_invalid_duration(self, manager: BookingTransactionManager, months: int) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), months)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_invalid_check_in(self, manager: BookingTransactionManager) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-a", "PROP-001", "not-a-date", 3)  # type: ignore[arg-type]
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_overlap_conflicts(self, manager: BookingTransactionManager) -> None:
        # Existing Jan 1 to Apr 1; requested Mar 1 to Jun 1
        manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 3)

        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-b", "PROP-001", date(2024, 3, 1), 3)
        assert exc_info.value.code == ErrorCode.CONFLICT

    def test_back_to_back_bookings_allowed(self, manager: BookingTransactionManager) -> None:
        manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 3)
        booking, _ = manager.create_booking("tenant-b", "PROP-001", date(2024, 4, 1), 3)
        assert booking.check_in == date(2024, 4, 1)

    def test_conflict_does_not_open_gateway_order(
        self, gateway_manager: BookingTransactionManager, fake_gateway: MagicMock
    ) -> None:
        gateway_manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 3)
        fake_gateway.create_order.reset_mock()

        with pytest.raises(BookingError):
            gateway_manager.create_booking("tenant-b", "PROP-001", date(2024, 2, 1), 1)
        fake_gateway.create_order.assert_not_called()

    def test_gateway_failure(
        self, gateway_manager: BookingTransactionManager, fake_gateway: MagicMock
    ) -> None:
        fake_gateway.create_order.side_effect = PaymentGatewayError("down")

        with pytest.raises(BookingError) as exc_info:
            gateway_manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 3)
        assert exc_info.value.code == ErrorCode.INTERNAL_FAILURE


class TestConcurrentCreation:
    def _race(self, db: Any, monkeypatch: Any, rival_commit: Any) -> None:
        """Run rival_commit just before the next transaction commits."""
        original = db.transact_write
        fired = {"done": False}

        def racing_transact(items: list[dict]) -> bool:
            if not fired["done"]:
                fired["done"] = True
                rival_commit()
            return original(items)

        monkeypatch.setattr(db, "transact_write", racing_transact)

    def test_overlapping_race_has_one_winner(
        self,
        db: Any,
        availability: Any,
        manager: BookingTransactionManager,
        make_manager: Any,
        monkeypatch: Any,
    ) -> None:
        rival = make_manager()
        self._race(
            db,
            monkeypatch,
            lambda: rival.create_booking("tenant-b", "PROP-001", date(2024, 2, 1), 2),
        )

        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        assert exc_info.value.code == ErrorCode.CONFLICT
        entries = availability.snapshot("PROP-001").entries
        assert len(entries) == 1
        assert entries[0].check_in == date(2024, 2, 1)

    def test_disjoint_race_retries_and_both_commit(
        self,
        db: Any,
        availability: Any,
        manager: BookingTransactionManager,
        make_manager: Any,
        monkeypatch: Any,
    ) -> None:
        rival = make_manager()
        self._race(
            db,
            monkeypatch,
            lambda: rival.create_booking("tenant-b", "PROP-001", date(2024, 6, 1), 2),
        )

        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        snapshot = availability.snapshot("PROP-001")
        assert {e.booking_id for e in snapshot.entries} >= {booking.booking_id}
        assert len(snapshot.entries) == 2
        assert snapshot.version == 2

    def test_exhausted_retries(
        self, db: Any, manager: BookingTransactionManager, monkeypatch: Any
    ) -> None:
        transact = MagicMock(return_value=False)
        monkeypatch.setattr(db, "transact_write", transact)

        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        assert exc_info.value.code == ErrorCode.INTERNAL_FAILURE
        assert transact.call_count == manager.max_commit_attempts

    def test_storage_error_is_internal_failure(
        self, db: Any, manager: BookingTransactionManager, monkeypatch: Any
    ) -> None:
        error = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow"}},
            "TransactWriteItems",
        )
        monkeypatch.setattr(db, "transact_write", MagicMock(side_effect=error))

        with pytest.raises(BookingError) as exc_info:
            manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        assert exc_info.value.code == ErrorCode.INTERNAL_FAILURE


class TestCancelBooking:
    def test_owner_cancels(self, manager: BookingTransactionManager, tenant: Any) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        cancelled = manager.cancel_booking(booking.booking_id, tenant, reason="Plans changed")

        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.cancellation_reason == "Plans changed"
        assert cancelled.version == booking.version + 1
        assert manager.get_booking(booking.booking_id).status == BookingStatus.CANCELLED

    def test_released_dates_can_be_rebooked(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        manager.cancel_booking(booking.booking_id, tenant)

        rebooked, _ = manager.create_booking("tenant-b", "PROP-001", date(2024, 2, 1), 1)
        assert rebooked.status == BookingStatus.CONFIRMED

    def test_admin_cancels_any_booking(
        self, manager: BookingTransactionManager, admin: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        assert manager.cancel_booking(booking.booking_id, admin).status == BookingStatus.CANCELLED

    def test_other_tenant_rejected(
        self, manager: BookingTransactionManager, other_tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        with pytest.raises(BookingError) as exc_info:
            manager.cancel_booking(booking.booking_id, other_tenant)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED

    def test_cancel_twice_rejected(self, manager: BookingTransactionManager, tenant: Any) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        manager.cancel_booking(booking.booking_id, tenant)

        with pytest.raises(BookingError) as exc_info:
            manager.cancel_booking(booking.booking_id, tenant)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_missing_booking(self, manager: BookingTransactionManager, tenant: Any) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.cancel_booking("BKG-MISSING", tenant)
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_concurrent_change_is_retried(
        self,
        db: Any,
        manager: BookingTransactionManager,
        admin: Any,
        tenant: Any,
        monkeypatch: Any,
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        original = db.transact_write
        fired = {"done": False}

        def racing_transact(items: list[dict]) -> bool:
            if not fired["done"]:
                fired["done"] = True
                manager.change_status(booking.booking_id, BookingStatus.ACTIVE, admin)
            return original(items)

        monkeypatch.setattr(db, "transact_write", racing_transact)
        cancelled = manager.cancel_booking(booking.booking_id, tenant)

        # The retry re-read the booking after the admin activated it
        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.version == 3


class TestExtendBooking:
    def test_extends_by_whole_months(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-002", date(2024, 1, 15), 3)

        extended = manager.extend_booking(booking.booking_id, tenant, date(2024, 6, 20))

        assert extended.duration_months == 5
        assert extended.check_out == date(2024, 6, 15)
        assert extended.total_price == 20000 * 5 + 5000
        assert manager.get_booking(booking.booking_id) == extended

    def test_shorter_extension_rejected(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        with pytest.raises(BookingError) as exc_info:
            manager.extend_booking(booking.booking_id, tenant, date(2024, 3, 20))
        assert exc_info.value.code == ErrorCode.INVALID_INPUT

    def test_extension_into_next_booking_conflicts(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 3)
        manager.create_booking("tenant-b", "PROP-001", date(2024, 5, 1), 2)

        with pytest.raises(BookingError) as exc_info:
            manager.extend_booking(booking.booking_id, tenant, date(2024, 6, 1))
        assert exc_info.value.code == ErrorCode.CONFLICT

    def test_extension_up_to_next_booking_allowed(
        self, manager: BookingTransactionManager, tenant: Any, availability: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 3)
        manager.create_booking("tenant-b", "PROP-001", date(2024, 5, 1), 2)

        extended = manager.extend_booking(booking.booking_id, tenant, date(2024, 5, 1))

        assert extended.check_out == date(2024, 5, 1)
        held = {e.booking_id: e for e in availability.snapshot("PROP-001").entries}
        assert held[booking.booking_id].check_out == date(2024, 5, 1)

    def test_cancelled_booking_cannot_extend(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        manager.cancel_booking(booking.booking_id, tenant)

        with pytest.raises(BookingError) as exc_info:
            manager.extend_booking(booking.booking_id, tenant, date(2024, 12, 15))
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_other_tenant_rejected(
        self, manager: BookingTransactionManager, other_tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        with pytest.raises(BookingError) as exc_info:
            manager.extend_booking(booking.booking_id, other_tenant, date(2024, 12, 15))
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED


class TestChangeStatus:
    def test_admin_walks_lifecycle(self, manager: BookingTransactionManager, admin: Any) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        for target in (
            BookingStatus.ACTIVE,
            BookingStatus.PAUSED,
            BookingStatus.ACTIVE,
            BookingStatus.COMPLETED,
        ):
            booking = manager.change_status(booking.booking_id, target, admin)

        assert booking.status == BookingStatus.COMPLETED
        assert len(booking.pause_history) == 1
        assert booking.pause_history[0].resumed_at is not None

    def test_completed_booking_releases_dates(
        self, manager: BookingTransactionManager, admin: Any, availability: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)
        manager.change_status(booking.booking_id, BookingStatus.ACTIVE, admin)
        manager.change_status(booking.booking_id, BookingStatus.COMPLETED, admin)

        assert availability.snapshot("PROP-001").entries == ()

    def test_tenant_cannot_change_status(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        with pytest.raises(BookingError) as exc_info:
            manager.change_status(booking.booking_id, BookingStatus.ACTIVE, tenant)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED

    def test_illegal_move(self, manager: BookingTransactionManager, admin: Any) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 15), 3)

        with pytest.raises(BookingError) as exc_info:
            manager.change_status(booking.booking_id, BookingStatus.COMPLETED, admin)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_unpaid_booking_cannot_be_confirmed(
        self, gateway_manager: BookingTransactionManager, admin: Any
    ) -> None:
        booking, payment = gateway_manager.create_booking(
            "tenant-a", "PROP-001", date(2024, 1, 15), 3
        )

        with pytest.raises(BookingError) as exc_info:
            gateway_manager.change_status(booking.booking_id, BookingStatus.CONFIRMED, admin)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

        assert gateway_manager.get_booking(booking.booking_id).status == BookingStatus.PENDING
        assert gateway_manager.get_payment(payment.payment_id).status == PaymentStatus.PENDING


class TestReads:
    def test_list_tenant_bookings_most_recent_first(
        self, manager: BookingTransactionManager
    ) -> None:
        first, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 1)
        second, _ = manager.create_booking("tenant-a", "PROP-002", date(2024, 1, 1), 1)
        manager.create_booking("tenant-b", "PROP-001", date(2024, 3, 1), 1)

        bookings = manager.list_tenant_bookings("tenant-a")
        assert [b.booking_id for b in bookings] == [second.booking_id, first.booking_id]

    def test_admin_lists_every_booking(
        self, manager: BookingTransactionManager, admin: Any
    ) -> None:
        first, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 1)
        second, _ = manager.create_booking("tenant-b", "PROP-002", date(2024, 1, 1), 1)

        bookings = manager.list_bookings(admin)
        assert [b.booking_id for b in bookings] == [second.booking_id, first.booking_id]

    def test_tenant_cannot_list_every_booking(
        self, manager: BookingTransactionManager, tenant: Any
    ) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.list_bookings(tenant)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED

    def test_get_booking_checks_owner(
        self, manager: BookingTransactionManager, tenant: Any, other_tenant: Any
    ) -> None:
        booking, _ = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 1)

        assert manager.get_booking(booking.booking_id, tenant) == booking
        with pytest.raises(BookingError) as exc_info:
            manager.get_booking(booking.booking_id, other_tenant)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED

    def test_get_payment_checks_owner(
        self, manager: BookingTransactionManager, admin: Any, other_tenant: Any
    ) -> None:
        _, payment = manager.create_booking("tenant-a", "PROP-001", date(2024, 1, 1), 1)

        assert manager.get_payment(payment.payment_id, admin) == payment
        with pytest.raises(BookingError) as exc_info:
            manager.get_payment(payment.payment_id, other_tenant)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED

    def test_missing_payment(self, manager: BookingTransactionManager) -> None:
        with pytest.raises(BookingError) as exc_info:
            manager.get_payment("PAY-MISSING")
        assert exc_info.value.code == ErrorCode.NOT_FOUND
