"""Repository for the Review aggregate.

Adds the lookups eligibility and the write path need on top of the standard
CRUD operations, including the guarded insert that keeps one active review
per purchase.
"""

from protean.exceptions import ValidationError

from reviews.domain import reviews
from reviews.errors import DuplicateReview
from reviews.review.review import Review, review_key
from reviews.utils.query import fetch_all


@reviews.repository(part_of=Review)
class ReviewRepository:
    def find_active(self, author_id, target_type, target_id, booking_id) -> Review | None:
        """The active review holding this purchase, if any."""
        if not booking_id:
            return None
        key = review_key(author_id, target_type, target_id, booking_id)
        results = self._dao.query.filter(active_key=key).all().items
        return next((review for review in results if review.is_active), None)

    def add_active(self, review: Review) -> Review:
        """Persist a review that claims its purchase key.

        Raises ``DuplicateReview`` when another active review already holds
        the key, whether found up front or reported by the unique constraint.
        """
        if review.booking_id:
            existing = self.find_active(
                review.author_id,
                review.target_type,
                review.target_id,
                review.booking_id,
            )
            if existing is not None and str(existing.id) != str(review.id):
                raise DuplicateReview(existing_review_id=str(existing.id))

        try:
            return self.add(review)
        except DuplicateReview:
            raise
        except ValidationError as exc:
            if "active_key" not in exc.messages:
                raise
            existing = self.find_active(
                review.author_id,
                review.target_type,
                review.target_id,
                review.booking_id,
            )
            raise DuplicateReview(existing_review_id=str(existing.id) if existing else None) from exc

    def active_for_target(self, target_type, target_id) -> list[Review]:
        return fetch_all(
            self,
            target_type=target_type,
            target_id=str(target_id),
            is_active=True,
        )

    def all_active(self) -> list[Review]:
        return fetch_all(self, is_active=True)
