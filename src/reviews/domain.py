"""Reviews & Ratings bounded context — review eligibility and rating aggregation.

Decides who may review a guide, hotel, vehicle, tour or custom trip, keeps a
completed purchase to a single active review, and maintains rating statistics
per reviewed target. Reads booking state from the Bookings domain through the
Booking Oracle port.
"""

import structlog
from protean.domain import Domain

reviews = Domain(name="reviews")

logger = structlog.get_logger(__name__)


def setting(name, default=None):
    """Read a review-specific value from the ``[custom]`` section of domain.toml."""
    custom = reviews.config.get("custom") or {}
    return custom.get(name, default)
