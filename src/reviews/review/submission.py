"""SubmitReview — create a review for a completed purchase.

Eligibility is re-evaluated inside the handler against current booking
state. ``submit_review`` holds the purchase claim around the whole command,
including the commit, so a caller that lost a race with a concurrent
submission gets ``DuplicateReview`` instead of a second active review.
"""

import json

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.errors import DuplicateReview, NotEligible
from reviews.review.claims import claims
from reviews.review.eligibility import can_create
from reviews.review.review import Review, review_key
from reviews.target.registry import resolve

logger = structlog.get_logger(__name__)


@reviews.command(part_of="Review")
class SubmitReview:
    author_id = Identifier(required=True)
    target_type = String(required=True, max_length=20)
    target_id = Identifier(required=True)
    booking_id = Identifier()
    rating = Integer(required=True)
    title = String(max_length=100)
    comment = Text(required=True)
    detailed_ratings = Text()  # JSON: {"cleanliness": 4, ...}


@reviews.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        eligibility = can_create(
            command.author_id,
            command.target_type,
            command.target_id,
            command.booking_id,
        )
        if not eligibility.allowed:
            if eligibility.existing_review_id:
                raise DuplicateReview(existing_review_id=eligibility.existing_review_id)
            raise NotEligible(reason=eligibility.reason)

        detailed = json.loads(command.detailed_ratings) if command.detailed_ratings else None

        review = Review.submit(
            author_id=command.author_id,
            target_type=command.target_type,
            target_id=command.target_id,
            booking_id=command.booking_id,
            rating=command.rating,
            title=command.title,
            comment=command.comment,
            detailed_ratings=detailed,
            is_verified=bool(command.booking_id),
        )

        current_domain.repository_for(Review).add_active(review)
        logger.info(
            "review_submitted",
            review_id=str(review.id),
            target_type=review.target_type,
            target_id=str(review.target_id),
            verified=review.is_verified,
        )
        return str(review.id)


def submit_review(command: SubmitReview):
    """Process a SubmitReview while holding its purchase claim.

    The handler joins the unit of work opened here, so the claim is released
    only after the new review is committed. Returns the new review's id.
    """
    if not command.booking_id:
        return current_domain.process(command, asynchronous=False)

    target_type = resolve(command.target_type).target_type.value
    key = review_key(command.author_id, target_type, command.target_id, command.booking_id)
    with claims.hold(key), UnitOfWork():
        return current_domain.process(command, asynchronous=False)
