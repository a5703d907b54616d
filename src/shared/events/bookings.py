"""Cross-domain event contracts for Bookings domain events.

These classes define the event shape for consumption by other domains
(e.g., the Reviews domain to know which bookings are completed and paid
for). They are registered as external events via
domain.register_external_event() with matching __type__ strings so
Protean's stream deserialization works correctly.

A booking can be for a guide, hotel, vehicle, tour or custom trip;
``target_type`` carries that tag and ``target_id`` the booked entity.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String


class BookingConfirmed(BaseEvent):
    """A booking was confirmed by the provider.

    First event the Reviews domain needs for a booking: carries who booked
    what. Payment may already be captured at confirmation time.
    """

    __version__ = 1

    booking_id = Identifier(required=True)
    user_id = Identifier(required=True)
    target_type = String(required=True)
    target_id = Identifier(required=True)
    payment_status = String(default="unpaid")
    confirmed_at = DateTime(required=True)


class BookingPaymentRecorded(BaseEvent):
    """Payment for a booking was captured (or its status changed)."""

    __version__ = 1

    booking_id = Identifier(required=True)
    payment_status = String(required=True)  # "paid", "refunded", ...
    recorded_at = DateTime(required=True)


class BookingCompleted(BaseEvent):
    """The booked service was delivered."""

    __version__ = 1

    booking_id = Identifier(required=True)
    completed_at = DateTime(required=True)


class BookingCancelled(BaseEvent):
    """A booking was cancelled before completion."""

    __version__ = 1

    booking_id = Identifier(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
