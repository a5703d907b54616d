"""AuthorReviews — a customer's review history across all targets."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.review.events import (
    ReviewDeactivated,
    ReviewEdited,
    ReviewReactivated,
    ReviewSubmitted,
)
from reviews.review.review import Review


@reviews.projection
class AuthorReviews:
    review_id = Identifier(identifier=True, required=True)
    author_id = Identifier(required=True)
    target_type = String(required=True, max_length=20)
    target_id = Identifier(required=True)
    booking_id = Identifier()
    rating = Integer(required=True)
    title = String(max_length=100)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()


@reviews.projector(projector_for=AuthorReviews, aggregates=[Review])
class AuthorReviewsProjector:
    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        current_domain.repository_for(AuthorReviews).add(
            AuthorReviews(
                review_id=event.review_id,
                author_id=event.author_id,
                target_type=event.target_type,
                target_id=event.target_id,
                booking_id=event.booking_id,
                rating=event.rating,
                title=event.title,
                is_active=True,
                created_at=event.submitted_at,
                updated_at=event.submitted_at,
            )
        )

    def _update(self, review_id, **changes):
        repo = current_domain.repository_for(AuthorReviews)
        try:
            ar = repo.get(review_id)
        except ObjectNotFoundError:
            return
        for name, value in changes.items():
            setattr(ar, name, value)
        repo.add(ar)

    @on(ReviewEdited)
    def on_review_edited(self, event):
        self._update(
            event.review_id,
            rating=event.rating,
            title=event.title,
            updated_at=event.edited_at,
        )

    @on(ReviewDeactivated)
    def on_review_deactivated(self, event):
        self._update(event.review_id, is_active=False, updated_at=event.deactivated_at)

    @on(ReviewReactivated)
    def on_review_reactivated(self, event):
        self._update(event.review_id, is_active=True, updated_at=event.reactivated_at)
