"""In-memory Booking Oracle for development and testing.

Bookings are registered directly instead of arriving through booking
events, so eligibility rules can be exercised against any status and
payment combination. Every lookup is recorded in ``lookups``.
"""

from dataclasses import replace

from reviews.booking.port import BookingOracle, BookingSnapshot


class InMemoryBookingOracle(BookingOracle):
    """Configurable booking table."""

    def __init__(self) -> None:
        self.bookings: dict[str, BookingSnapshot] = {}
        self.lookups: list[str] = []

    def record(
        self,
        booking_id: str,
        user_id: str,
        target_type: str,
        target_id: str,
        status: str = "completed",
        payment_status: str = "paid",
    ) -> BookingSnapshot:
        """Register (or replace) a booking."""
        snapshot = BookingSnapshot(
            booking_id=str(booking_id),
            user_id=str(user_id),
            target_type=target_type,
            target_id=str(target_id),
            status=status,
            payment_status=payment_status,
        )
        self.bookings[snapshot.booking_id] = snapshot
        return snapshot

    def update(self, booking_id: str, **changes) -> BookingSnapshot:
        """Change status and/or payment status of a registered booking."""
        snapshot = replace(self.bookings[str(booking_id)], **changes)
        self.bookings[snapshot.booking_id] = snapshot
        return snapshot

    def get_booking(self, booking_id: str) -> BookingSnapshot | None:
        self.lookups.append(str(booking_id))
        return self.bookings.get(str(booking_id))
