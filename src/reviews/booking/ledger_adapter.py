"""Booking Oracle backed by the BookingLedger projection."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviews.booking.port import BookingOracle, BookingSnapshot
from reviews.projections.booking_ledger import BookingLedger


class LedgerBookingOracle(BookingOracle):
    """Answers booking lookups from the ledger kept up to date by booking events."""

    def get_booking(self, booking_id: str) -> BookingSnapshot | None:
        try:
            entry = current_domain.repository_for(BookingLedger).get(str(booking_id))
        except ObjectNotFoundError:
            return None

        return BookingSnapshot(
            booking_id=str(entry.booking_id),
            user_id=str(entry.user_id),
            target_type=entry.target_type,
            target_id=str(entry.target_id),
            status=entry.status,
            payment_status=entry.payment_status or "unpaid",
        )
