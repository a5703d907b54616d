"""TargetRating — rating statistics per reviewed target, kept by deltas.

Every review entering or leaving the active set, and every edit, moves the
target's counters by one review. ``total_reviews`` and ``average_rating``
are rewritten from the distribution on each change. ReconcileTargetRatings
rebuilds records from the reviews themselves if counters ever drift.
"""

import json

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.rating.tally import RatingTally
from reviews.review.events import (
    ReviewDeactivated,
    ReviewEdited,
    ReviewReactivated,
    ReviewSubmitted,
)
from reviews.review.review import Review


@reviews.projection
class TargetRating:
    rating_key = Identifier(identifier=True, required=True)  # "{target_type}:{target_id}"
    target_type = String(required=True, max_length=20)
    target_id = Identifier(required=True)
    average_rating = Float(default=0.0)
    total_reviews = Integer(default=0)
    rating_distribution = Text()  # JSON: {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}
    verified_review_count = Integer(default=0)
    category_totals = Text()  # JSON: {"cleanliness": [sum, count], ...}
    updated_at = DateTime()


def rating_key(target_type, target_id) -> str:
    return f"{target_type}:{target_id}"


def load_target_rating(target_type, target_id) -> TargetRating | None:
    try:
        return current_domain.repository_for(TargetRating).get(rating_key(target_type, target_id))
    except ObjectNotFoundError:
        return None


def _detailed(payload):
    return json.loads(payload) if payload else {}


@reviews.projector(projector_for=TargetRating, aggregates=[Review])
class TargetRatingProjector:
    def _apply(self, target_type, target_id, changes, updated_at):
        record = load_target_rating(target_type, target_id)
        if record is None:
            record = TargetRating(
                rating_key=rating_key(target_type, target_id),
                target_type=target_type,
                target_id=str(target_id),
            )

        tally = RatingTally.from_record(record)
        for rating, detailed, verified, sign in changes:
            tally.apply(rating, detailed, verified, sign)

        current_domain.repository_for(TargetRating).add(tally.write_to(record, updated_at))

    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        self._apply(
            event.target_type,
            event.target_id,
            [(event.rating, _detailed(event.detailed_ratings), event.is_verified, 1)],
            event.submitted_at,
        )

    @on(ReviewReactivated)
    def on_review_reactivated(self, event):
        self._apply(
            event.target_type,
            event.target_id,
            [(event.rating, _detailed(event.detailed_ratings), event.is_verified, 1)],
            event.reactivated_at,
        )

    @on(ReviewDeactivated)
    def on_review_deactivated(self, event):
        self._apply(
            event.target_type,
            event.target_id,
            [(event.rating, _detailed(event.detailed_ratings), event.is_verified, -1)],
            event.deactivated_at,
        )

    @on(ReviewEdited)
    def on_review_edited(self, event):
        if event.previous_rating == event.rating and event.previous_detailed_ratings == event.detailed_ratings:
            return

        # Verified count is unchanged by an edit: withdraw and re-add unverified
        self._apply(
            event.target_type,
            event.target_id,
            [
                (event.previous_rating, _detailed(event.previous_detailed_ratings), False, -1),
                (event.rating, _detailed(event.detailed_ratings), False, 1),
            ],
            event.edited_at,
        )
