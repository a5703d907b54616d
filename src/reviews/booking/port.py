"""Booking Oracle port (abstract interface).

The Reviews domain never owns bookings; it only asks "what is the current
state of booking B?". This port lets the answer come from the local
BookingLedger projection (production) or from an in-memory table
(development and tests) without changing eligibility code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BookingSnapshot:
    """Read-only view of a booking at the moment it was looked up."""

    booking_id: str
    user_id: str
    target_type: str
    target_id: str
    status: str
    payment_status: str


class BookingOracle(ABC):
    """Abstract booking lookup interface."""

    @abstractmethod
    def get_booking(self, booking_id: str) -> BookingSnapshot | None:
        """Return the booking's current state, or None if it does not exist."""
        ...
