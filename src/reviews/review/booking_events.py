"""Inbound cross-domain event handler — Reviews reacts to Bookings events.

Keeps the BookingLedger projection in step with the Bookings domain so the
ledger-backed Booking Oracle can answer eligibility lookups locally.

Cross-domain events are imported from shared.events.bookings and registered
as external events via reviews.register_external_event().
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.bookings import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingPaymentRecorded,
)

from reviews.domain import reviews
from reviews.projections.booking_ledger import BookingLedger
from reviews.review.review import Review

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
reviews.register_external_event(BookingConfirmed, "Bookings.BookingConfirmed.v1")
reviews.register_external_event(BookingPaymentRecorded, "Bookings.BookingPaymentRecorded.v1")
reviews.register_external_event(BookingCompleted, "Bookings.BookingCompleted.v1")
reviews.register_external_event(BookingCancelled, "Bookings.BookingCancelled.v1")


def _ledger_entry(booking_id):
    try:
        return current_domain.repository_for(BookingLedger).get(str(booking_id))
    except ObjectNotFoundError:
        return None


@reviews.event_handler(part_of=Review, stream_category="bookings::booking")
class BookingsEventsHandler:
    """Reacts to Bookings domain events to track which bookings are reviewable."""

    @handle(BookingConfirmed)
    def on_booking_confirmed(self, event: BookingConfirmed) -> None:
        repo = current_domain.repository_for(BookingLedger)
        entry = _ledger_entry(event.booking_id)

        if entry is None:
            entry = BookingLedger(
                booking_id=str(event.booking_id),
                user_id=str(event.user_id),
                target_type=event.target_type,
                target_id=str(event.target_id),
                status="confirmed",
                payment_status=event.payment_status or "unpaid",
                updated_at=event.confirmed_at,
            )
        elif entry.status == "confirmed":
            # Redelivery of the same confirmation may still carry a newer payment state
            entry.payment_status = event.payment_status or entry.payment_status
            entry.updated_at = event.confirmed_at
        else:
            logger.info(
                "Ignoring confirmation for booking past confirmed",
                booking_id=str(event.booking_id),
                status=entry.status,
            )
            return

        repo.add(entry)

    @handle(BookingPaymentRecorded)
    def on_payment_recorded(self, event: BookingPaymentRecorded) -> None:
        entry = _ledger_entry(event.booking_id)
        if entry is None:
            logger.warning(
                "Payment recorded for unknown booking, skipping",
                booking_id=str(event.booking_id),
            )
            return

        entry.payment_status = event.payment_status
        entry.updated_at = event.recorded_at
        current_domain.repository_for(BookingLedger).add(entry)

    @handle(BookingCompleted)
    def on_booking_completed(self, event: BookingCompleted) -> None:
        entry = _ledger_entry(event.booking_id)
        if entry is None:
            logger.warning(
                "Completion for unknown booking, skipping",
                booking_id=str(event.booking_id),
            )
            return

        entry.status = "completed"
        entry.updated_at = event.completed_at
        current_domain.repository_for(BookingLedger).add(entry)

    @handle(BookingCancelled)
    def on_booking_cancelled(self, event: BookingCancelled) -> None:
        entry = _ledger_entry(event.booking_id)
        if entry is None:
            logger.warning(
                "Cancellation for unknown booking, skipping",
                booking_id=str(event.booking_id),
            )
            return

        entry.status = "cancelled"
        entry.updated_at = event.cancelled_at
        current_domain.repository_for(BookingLedger).add(entry)
