"""Booking Oracle factory.

Provides get_oracle() / set_oracle() to swap implementations:
- LedgerBookingOracle (default) reads the BookingLedger projection
- InMemoryBookingOracle for development and testing
"""

from reviews.booking.ledger_adapter import LedgerBookingOracle
from reviews.booking.port import BookingOracle

_current_oracle: BookingOracle | None = None


def get_oracle() -> BookingOracle:
    """Return the current booking oracle. Defaults to LedgerBookingOracle."""
    global _current_oracle
    if _current_oracle is None:
        _current_oracle = LedgerBookingOracle()
    return _current_oracle


def set_oracle(oracle: BookingOracle) -> None:
    """Override the active booking oracle (useful for tests)."""
    global _current_oracle
    _current_oracle = oracle


def reset_oracle() -> None:
    """Reset to default oracle."""
    global _current_oracle
    _current_oracle = None
