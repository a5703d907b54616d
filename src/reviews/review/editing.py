"""EditReview — change the content of an active review.

The patch arrives as a JSON object so that explicit nulls (clearing a title)
and attempts to touch fixed fields are both visible to the handler. Only the
author, or a caller with the admin capability, may edit.
"""

import json

from protean.fields import Boolean, Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.errors import ImmutableFieldError, NotOwner, ReviewValidationError
from reviews.review.eligibility import can_modify
from reviews.review.review import Review

MUTABLE_FIELDS = ("rating", "title", "comment", "detailed_ratings")
IMMUTABLE_FIELDS = ("author_id", "target_type", "target_id", "booking_id")


def check_patch(changes) -> dict:
    """Validate the shape of an edit patch and return its mutable part."""
    if not isinstance(changes, dict):
        raise ReviewValidationError("Changes must be an object", field="changes")

    fixed = sorted(name for name in changes if name in IMMUTABLE_FIELDS)
    if fixed:
        raise ImmutableFieldError(
            f"{', '.join(fixed)} cannot be changed after a review is created",
            field=fixed[0],
            fields=fixed,
        )

    unknown = sorted(name for name in changes if name not in MUTABLE_FIELDS)
    if unknown:
        raise ReviewValidationError(f"Unknown fields: {', '.join(unknown)}", field="changes")

    if not changes:
        raise ReviewValidationError("Nothing to change", field="changes")

    return changes


@reviews.command(part_of="Review")
class EditReview:
    review_id = Identifier(required=True)
    caller_id = Identifier(required=True)
    is_admin = Boolean(default=False)
    changes = Text(required=True)  # JSON: {"rating": 3, "comment": "..."}


@reviews.command_handler(part_of=Review)
class EditReviewHandler:
    @handle(EditReview)
    def edit_review(self, command):
        changes = check_patch(json.loads(command.changes))

        eligibility = can_modify(command.caller_id, command.review_id, "edit", is_admin=command.is_admin)
        if not eligibility.allowed:
            raise NotOwner(review_id=str(command.review_id))

        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)
        review.edit(**changes)
        repo.add(review)
        return str(review.id)
