"""Eligibility rules: who may review what, and who may change a review.

Both checks read current state on every call. Booking status can change
between page loads (payment completes, booking is cancelled), so nothing
here is cached.

Outcomes that are part of normal flow (booking not yet complete, already
reviewed, not the owner) come back as an ``Eligibility`` result. Lookups
that cannot be answered at all (unknown booking, someone else's booking,
booking for a different target, missing review) raise.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviews.booking import get_oracle
from reviews.booking.port import BookingSnapshot
from reviews.domain import setting
from reviews.errors import (
    BookingNotFound,
    BookingNotOwnedByCaller,
    ReviewNotFound,
    ReviewValidationError,
    TargetMismatch,
)
from reviews.review.review import Review
from reviews.target.registry import resolve

logger = structlog.get_logger(__name__)

BOOKING_REQUIRED = "booking required"
BOOKING_NOT_ELIGIBLE = "booking not eligible"
ALREADY_REVIEWED = "already reviewed"
NOT_OWNER = "not owner"

ACTIONS = ("edit", "delete")


@dataclass(frozen=True)
class Eligibility:
    allowed: bool
    reason: str | None = None
    existing_review_id: str | None = None

    def to_dict(self) -> dict:
        result = {"allowed": self.allowed}
        if self.reason is not None:
            result["reason"] = self.reason
        if self.existing_review_id is not None:
            result["existing_review_id"] = self.existing_review_id
        return result


def is_purchase_complete(booking: BookingSnapshot) -> bool:
    """Completed, or confirmed and already paid for."""
    if booking.status == "completed":
        return True
    return booking.status == "confirmed" and booking.payment_status == "paid"


def can_create(author_id, target_type, target_id, booking_id=None) -> Eligibility:
    target_type = resolve(target_type).target_type.value
    author_id, target_id = str(author_id), str(target_id)

    if not booking_id:
        if setting("allow_unverified_reviews", False):
            return Eligibility(allowed=True)
        logger.info("review_denied", author_id=author_id, reason=BOOKING_REQUIRED)
        return Eligibility(allowed=False, reason=BOOKING_REQUIRED)

    booking_id = str(booking_id)
    booking = get_oracle().get_booking(booking_id)
    if booking is None:
        raise BookingNotFound(booking_id=booking_id)
    if booking.user_id != author_id:
        raise BookingNotOwnedByCaller(booking_id=booking_id)
    if booking.target_type != target_type or booking.target_id != target_id:
        raise TargetMismatch(booking_id=booking_id)

    if not is_purchase_complete(booking):
        logger.info(
            "review_denied",
            author_id=author_id,
            booking_id=booking_id,
            reason=BOOKING_NOT_ELIGIBLE,
            status=booking.status,
            payment_status=booking.payment_status,
        )
        return Eligibility(allowed=False, reason=BOOKING_NOT_ELIGIBLE)

    existing = current_domain.repository_for(Review).find_active(author_id, target_type, target_id, booking_id)
    if existing is not None:
        return Eligibility(
            allowed=False,
            reason=ALREADY_REVIEWED,
            existing_review_id=str(existing.id),
        )

    return Eligibility(allowed=True)


def load_active_review(review_id) -> Review:
    """Fetch a review that is still active, or raise ``ReviewNotFound``."""
    try:
        review = current_domain.repository_for(Review).get(str(review_id))
    except ObjectNotFoundError:
        raise ReviewNotFound(review_id=str(review_id)) from None
    if not review.is_active:
        raise ReviewNotFound(review_id=str(review_id))
    return review


def can_modify(caller_id, review_id, action, is_admin=False) -> Eligibility:
    if action not in ACTIONS:
        raise ReviewValidationError(f"Unknown action '{action}'", field="action")

    review = load_active_review(review_id)
    if is_admin or str(review.author_id) == str(caller_id):
        return Eligibility(allowed=True)

    logger.info(
        "review_change_denied",
        review_id=str(review_id),
        caller_id=str(caller_id),
        action=action,
    )
    return Eligibility(allowed=False, reason=NOT_OWNER)
