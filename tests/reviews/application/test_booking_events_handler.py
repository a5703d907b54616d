"""Application tests for the Bookings cross-domain event handler and the ledger oracle."""

from datetime import UTC, datetime

import pytest
from protean import current_domain
from reviews.booking import get_oracle, reset_oracle, set_oracle
from reviews.booking.ledger_adapter import LedgerBookingOracle
from reviews.projections.booking_ledger import BookingLedger
from reviews.review.booking_events import BookingsEventsHandler
from reviews.review.eligibility import BOOKING_NOT_ELIGIBLE, can_create
from shared.events.bookings import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingPaymentRecorded,
)


@pytest.fixture()
def ledger():
    set_oracle(LedgerBookingOracle())
    yield current_domain.repository_for(BookingLedger)
    reset_oracle()


def _confirm(booking_id, user_id="user-bk", target_type="hotel", target_id="hotel-bk", payment_status="unpaid"):
    BookingsEventsHandler().on_booking_confirmed(
        BookingConfirmed(
            booking_id=booking_id,
            user_id=user_id,
            target_type=target_type,
            target_id=target_id,
            payment_status=payment_status,
            confirmed_at=datetime.now(UTC),
        )
    )


class TestBookingConfirmed:
    def test_creates_ledger_entry(self, ledger):
        _confirm("bk-1")
        entry = ledger.get("bk-1")
        assert entry.status == "confirmed"
        assert entry.payment_status == "unpaid"
        assert str(entry.user_id) == "user-bk"

    def test_confirmed_with_payment(self, ledger):
        _confirm("bk-2", payment_status="paid")
        assert ledger.get("bk-2").payment_status == "paid"

    def test_redelivery_after_completion_ignored(self, ledger):
        _confirm("bk-3")
        BookingsEventsHandler().on_booking_completed(
            BookingCompleted(booking_id="bk-3", completed_at=datetime.now(UTC))
        )
        _confirm("bk-3")
        assert ledger.get("bk-3").status == "completed"


class TestBookingLifecycle:
    def test_payment_recorded(self, ledger):
        _confirm("bk-4")
        BookingsEventsHandler().on_payment_recorded(
            BookingPaymentRecorded(booking_id="bk-4", payment_status="paid", recorded_at=datetime.now(UTC))
        )
        assert ledger.get("bk-4").payment_status == "paid"

    def test_completed(self, ledger):
        _confirm("bk-5")
        BookingsEventsHandler().on_booking_completed(
            BookingCompleted(booking_id="bk-5", completed_at=datetime.now(UTC))
        )
        assert ledger.get("bk-5").status == "completed"

    def test_cancelled(self, ledger):
        _confirm("bk-6", payment_status="paid")
        BookingsEventsHandler().on_booking_cancelled(
            BookingCancelled(booking_id="bk-6", reason="Weather", cancelled_at=datetime.now(UTC))
        )
        assert ledger.get("bk-6").status == "cancelled"

    def test_events_for_unknown_booking_skipped(self, ledger):
        handler = BookingsEventsHandler()
        handler.on_payment_recorded(
            BookingPaymentRecorded(booking_id="bk-x", payment_status="paid", recorded_at=datetime.now(UTC))
        )
        handler.on_booking_completed(BookingCompleted(booking_id="bk-x", completed_at=datetime.now(UTC)))
        handler.on_booking_cancelled(BookingCancelled(booking_id="bk-x", cancelled_at=datetime.now(UTC)))
        assert ledger._dao.query.filter(booking_id="bk-x").all().items == []


class TestLedgerOracle:
    def test_default_oracle_reads_ledger(self):
        reset_oracle()
        assert isinstance(get_oracle(), LedgerBookingOracle)

    def test_unknown_booking_is_none(self, ledger):
        assert get_oracle().get_booking("bk-none") is None

    def test_snapshot_from_ledger(self, ledger):
        _confirm("bk-7", payment_status="paid")
        snapshot = get_oracle().get_booking("bk-7")
        assert snapshot.booking_id == "bk-7"
        assert snapshot.target_type == "hotel"
        assert snapshot.status == "confirmed"
        assert snapshot.payment_status == "paid"

    def test_eligibility_follows_booking_events(self, ledger):
        _confirm("bk-8")
        assert can_create("user-bk", "hotel", "hotel-bk", "bk-8").reason == BOOKING_NOT_ELIGIBLE

        BookingsEventsHandler().on_payment_recorded(
            BookingPaymentRecorded(booking_id="bk-8", payment_status="paid", recorded_at=datetime.now(UTC))
        )
        assert can_create("user-bk", "hotel", "hotel-bk", "bk-8").allowed is True

        BookingsEventsHandler().on_booking_cancelled(
            BookingCancelled(booking_id="bk-8", cancelled_at=datetime.now(UTC))
        )
        assert can_create("user-bk", "hotel", "hotel-bk", "bk-8").allowed is False
