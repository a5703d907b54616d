"""Domain events for the Review aggregate.

All events are versioned, immutable facts representing state changes.
Events are used for:
- Updating projections (review listings, rating statistics) via projectors
- Cross-domain communication via Redis Streams

Events that move a review in or out of the active set carry the rating and
detailed ratings so rating projectors can apply deltas without reloading
the aggregate.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from reviews.domain import reviews


@reviews.event(part_of="Review")
class ReviewSubmitted:
    """An eligible customer submitted a review."""

    __version__ = 1

    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    target_type = String(required=True)
    target_id = Identifier(required=True)
    booking_id = Identifier()
    rating = Integer(required=True)
    detailed_ratings = Text()  # JSON: {"cleanliness": 4, ...}
    title = String()
    comment = Text(required=True)
    is_verified = Boolean(default=False)
    submitted_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewEdited:
    """The author (or an administrator) changed a review's content."""

    __version__ = 1

    review_id = Identifier(required=True)
    target_type = String(required=True)
    target_id = Identifier(required=True)
    previous_rating = Integer(required=True)
    rating = Integer(required=True)
    previous_detailed_ratings = Text()
    detailed_ratings = Text()
    title = String()
    comment = Text()
    is_verified = Boolean(default=False)
    edited_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewDeactivated:
    """A review was soft-deleted and left the active set."""

    __version__ = 1

    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    target_type = String(required=True)
    target_id = Identifier(required=True)
    rating = Integer(required=True)
    detailed_ratings = Text()
    is_verified = Boolean(default=False)
    deactivated_by = Identifier(required=True)
    deactivated_at = DateTime(required=True)


@reviews.event(part_of="Review")
class ReviewReactivated:
    """An administrator restored a soft-deleted review to the active set."""

    __version__ = 1

    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    target_type = String(required=True)
    target_id = Identifier(required=True)
    rating = Integer(required=True)
    detailed_ratings = Text()
    is_verified = Boolean(default=False)
    reactivated_by = Identifier(required=True)
    reactivated_at = DateTime(required=True)


@reviews.event(part_of="Review")
class HelpfulVoteRecorded:
    """A customer voted on whether a review was helpful."""

    __version__ = 1

    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    vote_type = String(required=True)
    helpful_count = Integer(required=True)
    unhelpful_count = Integer(required=True)
    voted_at = DateTime(required=True)
