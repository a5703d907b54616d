"""TargetReviews — active reviews listed on a target's page."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.review.events import (
    HelpfulVoteRecorded,
    ReviewDeactivated,
    ReviewEdited,
    ReviewReactivated,
    ReviewSubmitted,
)
from reviews.review.review import Review


@reviews.projection
class TargetReviews:
    review_id = Identifier(identifier=True, required=True)
    target_type = String(required=True, max_length=20)
    target_id = Identifier(required=True)
    author_id = Identifier(required=True)
    booking_id = Identifier()
    rating = Integer(required=True)
    detailed_ratings = Text()
    title = String(max_length=100)
    comment = Text(required=True)
    is_verified = Boolean(default=False)
    is_edited = Boolean(default=False)
    helpful_count = Integer(default=0)
    unhelpful_count = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()


def _listing_from(review: Review) -> TargetReviews:
    return TargetReviews(
        review_id=str(review.id),
        target_type=review.target_type,
        target_id=str(review.target_id),
        author_id=str(review.author_id),
        booking_id=str(review.booking_id) if review.booking_id else None,
        rating=review.rating.score,
        detailed_ratings=review.detailed_ratings,
        title=review.title,
        comment=review.comment,
        is_verified=review.is_verified,
        is_edited=review.is_edited,
        helpful_count=review.helpful_count,
        unhelpful_count=review.unhelpful_count,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


@reviews.projector(projector_for=TargetReviews, aggregates=[Review])
class TargetReviewsProjector:
    def _listing(self, review_id):
        try:
            return current_domain.repository_for(TargetReviews).get(review_id)
        except ObjectNotFoundError:
            return None

    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        review = current_domain.repository_for(Review).get(event.review_id)
        current_domain.repository_for(TargetReviews).add(_listing_from(review))

    @on(ReviewReactivated)
    def on_review_reactivated(self, event):
        review = current_domain.repository_for(Review).get(event.review_id)
        current_domain.repository_for(TargetReviews).add(_listing_from(review))

    @on(ReviewEdited)
    def on_review_edited(self, event):
        listing = self._listing(event.review_id)
        if listing is None:
            return
        listing.rating = event.rating
        listing.detailed_ratings = event.detailed_ratings
        listing.title = event.title
        listing.comment = event.comment
        listing.is_edited = True
        listing.updated_at = event.edited_at
        current_domain.repository_for(TargetReviews).add(listing)

    @on(HelpfulVoteRecorded)
    def on_helpful_vote_recorded(self, event):
        listing = self._listing(event.review_id)
        if listing is None:
            return
        listing.helpful_count = event.helpful_count
        listing.unhelpful_count = event.unhelpful_count
        current_domain.repository_for(TargetReviews).add(listing)

    @on(ReviewDeactivated)
    def on_review_deactivated(self, event):
        listing = self._listing(event.review_id)
        if listing is not None:
            current_domain.repository_for(TargetReviews).remove(listing)
