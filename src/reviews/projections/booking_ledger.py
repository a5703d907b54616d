"""BookingLedger — the Reviews domain's local copy of booking status.

Populated by the Bookings cross-domain event handler and read by the
ledger-backed Booking Oracle when checking review eligibility.
"""

from protean.fields import DateTime, Identifier, String

from reviews.domain import reviews


@reviews.projection
class BookingLedger:
    booking_id = Identifier(identifier=True, required=True)
    user_id = Identifier(required=True)
    target_type = String(required=True, max_length=20)
    target_id = Identifier(required=True)
    status = String(required=True, max_length=20)  # confirmed, completed, cancelled
    payment_status = String(default="unpaid", max_length=20)
    updated_at = DateTime()
