"""Soft deletion and administrative restore of reviews.

DeleteReview takes a review out of the active set. Deleting a review that
is already inactive succeeds without change for its author or an admin.

SetReviewActive is the admin switch in both directions. Restoring a review
must not break one-active-review-per-purchase, so it fails with
``DuplicateReview`` when the author has since reviewed the same booking
again.
"""

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.errors import NotOwner, ReviewNotFound
from reviews.review.claims import claims
from reviews.review.eligibility import can_modify
from reviews.review.review import Review

logger = structlog.get_logger(__name__)


def _load(review_id) -> Review:
    try:
        return current_domain.repository_for(Review).get(str(review_id))
    except ObjectNotFoundError:
        raise ReviewNotFound(review_id=str(review_id)) from None


@reviews.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    caller_id = Identifier(required=True)
    is_admin = Boolean(default=False)


@reviews.command(part_of="Review")
class SetReviewActive:
    review_id = Identifier(required=True)
    active = Boolean(required=True)
    admin_id = Identifier(required=True)


@reviews.command_handler(part_of=Review)
class RemovalHandler:
    @handle(DeleteReview)
    def delete_review(self, command):
        review = _load(command.review_id)

        if not review.is_active:
            # Repeat deletes are a no-op, but only for callers allowed to make them
            if command.is_admin or str(review.author_id) == str(command.caller_id):
                return False
            raise ReviewNotFound(review_id=str(command.review_id))

        eligibility = can_modify(command.caller_id, command.review_id, "delete", is_admin=command.is_admin)
        if not eligibility.allowed:
            raise NotOwner(review_id=str(command.review_id))

        review.deactivate(deactivated_by=command.caller_id)
        current_domain.repository_for(Review).add(review)
        logger.info(
            "review_deleted",
            review_id=str(review.id),
            by_admin=bool(command.is_admin),
        )
        return True

    @handle(SetReviewActive)
    def set_review_active(self, command):
        repo = current_domain.repository_for(Review)
        review = _load(command.review_id)

        if command.active:
            changed = review.reactivate(reactivated_by=command.admin_id)
            if changed:
                repo.add_active(review)
        else:
            changed = review.deactivate(deactivated_by=command.admin_id)
            if changed:
                repo.add(review)

        logger.info(
            "review_active_set",
            review_id=str(review.id),
            active=bool(command.active),
            changed=changed,
        )
        return changed


def set_review_active(command: SetReviewActive):
    """Process a SetReviewActive, holding the purchase claim when restoring.

    A restore competes with new submissions for the same purchase, so it
    takes the same claim as ``submit_review``.
    """
    review = _load(command.review_id)
    if not command.active or not review.booking_id:
        return current_domain.process(command, asynchronous=False)

    with claims.hold(review.purchase_key), UnitOfWork():
        return current_domain.process(command, asynchronous=False)
