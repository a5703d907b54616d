"""Review aggregate (CQRS) — the core of the Reviews & Ratings domain.

A Review is one customer's rating and comment about a guide, hotel,
vehicle, tour or custom trip, normally tied to the booking that made the
customer eligible. Author, target and booking are fixed at submission;
rating, title, comment and detailed ratings can be edited.

Reviews are never hard-deleted. Soft deletion flips ``is_active`` and
releases the review's ``active_key`` so the same purchase can be reviewed
again; an administrator may later restore it if nothing else has taken the
key in the meantime.

``active_key`` holds the JSON array ``[author, target_type, target_id,
booking_id]`` while the review is active. It is declared unique so a
relational provider enforces one active review per purchase at write time.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from reviews.domain import reviews, setting
from reviews.errors import ReviewValidationError
from reviews.review.events import (
    HelpfulVoteRecorded,
    ReviewDeactivated,
    ReviewEdited,
    ReviewReactivated,
    ReviewSubmitted,
)
from reviews.target.registry import TargetType, resolve, validate_detailed_ratings

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

COMMENT_MAX_LENGTH = 2000
TITLE_MAX_LENGTH = 100


class VoteType(Enum):
    HELPFUL = "Helpful"
    UNHELPFUL = "Unhelpful"


def review_key(author_id, target_type, target_id, booking_id):
    """The tuple that may hold at most one active review, encoded as a JSON array."""
    parts = [str(part) for part in (author_id, target_type, target_id, booking_id)]
    return json.dumps(parts, separators=(",", ":"))


def check_rating(rating, field="rating"):
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ReviewValidationError("Rating must be a whole number between 1 and 5", field=field)


def check_comment(comment):
    min_length = int(setting("comment_min_length", 10))
    if comment is None or len(comment.strip()) < min_length:
        raise ReviewValidationError(f"Comment must be at least {min_length} characters", field="comment")
    if len(comment) > COMMENT_MAX_LENGTH:
        raise ReviewValidationError(
            f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters",
            field="comment",
        )


def check_title(title):
    if title is not None and len(title) > TITLE_MAX_LENGTH:
        raise ReviewValidationError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters", field="title")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@reviews.value_object(part_of="Review")
class Rating:
    """A star rating from 1 to 5."""

    score = Integer(required=True)

    @invariant.post
    def score_must_be_in_range(self):
        if self.score is not None and (self.score < 1 or self.score > 5):
            raise ValidationError({"score": ["Rating must be between 1 and 5"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@reviews.entity(part_of="Review")
class HelpfulVote:
    """A vote on whether a review was helpful or unhelpful."""

    voter_id = Identifier(required=True)
    vote_type = String(choices=VoteType, required=True)
    voted_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@reviews.aggregate
class Review:
    """A customer's review of something they booked."""

    # Who reviewed what, and on the strength of which purchase
    author_id = Identifier(required=True)
    target_type = String(choices=TargetType, required=True, max_length=20)
    target_id = Identifier(required=True)
    booking_id = Identifier()
    active_key = String(max_length=255, unique=True)

    # Content
    rating = ValueObject(Rating, required=True)
    detailed_ratings = Text()  # JSON: {"cleanliness": 4, ...}
    title = String(max_length=TITLE_MAX_LENGTH)
    comment = Text(required=True)

    # Status
    is_active = Boolean(default=True)
    is_verified = Boolean(default=False)
    is_edited = Boolean(default=False)

    # Voting
    votes = HasMany(HelpfulVote)
    helpful_count = Integer(default=0)
    unhelpful_count = Integer(default=0)

    # Timestamps
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def comment_minimum_length(self):
        min_length = int(setting("comment_min_length", 10))
        if self.comment is not None and len(self.comment.strip()) < min_length:
            raise ValidationError({"comment": [f"Comment must be at least {min_length} characters"]})

    @invariant.post
    def active_review_holds_its_key(self):
        if self.is_active and self.booking_id and self.active_key != self.purchase_key:
            raise ValidationError({"active_key": ["Active review must hold its purchase key"]})

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def purchase_key(self):
        return review_key(self.author_id, self.target_type, self.target_id, self.booking_id)

    @property
    def detailed(self):
        return json.loads(self.detailed_ratings) if self.detailed_ratings else {}

    def _key_while_active(self):
        # Reviews without a booking are not bound by one-per-purchase
        return self.purchase_key if self.booking_id else f"unverified|{self.id}"

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        author_id,
        target_type,
        target_id,
        rating,
        comment,
        booking_id=None,
        title=None,
        detailed_ratings=None,
        is_verified=False,
    ):
        """Submit a new review. Eligibility is checked by the caller."""
        descriptor = resolve(target_type)
        check_rating(rating)
        check_comment(comment)
        check_title(title)
        detailed = validate_detailed_ratings(descriptor.target_type, detailed_ratings)

        now = datetime.now(UTC)
        target_type = descriptor.target_type.value

        review = cls(
            author_id=author_id,
            target_type=target_type,
            target_id=target_id,
            booking_id=booking_id,
            active_key=review_key(author_id, target_type, target_id, booking_id) if booking_id else None,
            rating=Rating(score=rating),
            detailed_ratings=json.dumps(detailed) if detailed else None,
            title=title,
            comment=comment,
            is_active=True,
            is_verified=bool(booking_id) and is_verified,
            is_edited=False,
            helpful_count=0,
            unhelpful_count=0,
            created_at=now,
            updated_at=now,
        )
        if not booking_id:
            review.active_key = review._key_while_active()

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                author_id=str(author_id),
                target_type=target_type,
                target_id=str(target_id),
                booking_id=str(booking_id) if booking_id else None,
                rating=rating,
                detailed_ratings=review.detailed_ratings,
                title=title,
                comment=comment,
                is_verified=review.is_verified,
                submitted_at=now,
            )
        )

        return review

    # -------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------
    def edit(self, rating=_UNSET, title=_UNSET, comment=_UNSET, detailed_ratings=_UNSET):
        """Change the mutable content of an active review."""
        if not self.is_active:
            raise ReviewValidationError("Deleted reviews cannot be edited", field="review")

        if rating is not _UNSET:
            check_rating(rating)
        if comment is not _UNSET:
            check_comment(comment)
        if title is not _UNSET:
            check_title(title)
        if detailed_ratings is not _UNSET:
            detailed_ratings = validate_detailed_ratings(self.target_type, detailed_ratings)

        now = datetime.now(UTC)
        previous_rating = self.rating.score
        previous_detailed = self.detailed_ratings

        with atomic_change(self):
            if rating is not _UNSET:
                self.rating = Rating(score=rating)
            if title is not _UNSET:
                self.title = title
            if comment is not _UNSET:
                self.comment = comment
            if detailed_ratings is not _UNSET:
                self.detailed_ratings = json.dumps(detailed_ratings) if detailed_ratings else None

            self.is_edited = True
            self.updated_at = now

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                target_type=self.target_type,
                target_id=str(self.target_id),
                previous_rating=previous_rating,
                rating=self.rating.score,
                previous_detailed_ratings=previous_detailed,
                detailed_ratings=self.detailed_ratings,
                title=self.title,
                comment=self.comment,
                is_verified=self.is_verified,
                edited_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Soft delete / restore
    # -------------------------------------------------------------------
    def deactivate(self, deactivated_by):
        """Soft-delete the review. Returns False when it was already inactive."""
        if not self.is_active:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_active = False
            self.active_key = f"inactive|{self.id}"
            self.updated_at = now

        self.raise_(
            ReviewDeactivated(
                review_id=str(self.id),
                author_id=str(self.author_id),
                target_type=self.target_type,
                target_id=str(self.target_id),
                rating=self.rating.score,
                detailed_ratings=self.detailed_ratings,
                is_verified=self.is_verified,
                deactivated_by=str(deactivated_by),
                deactivated_at=now,
            )
        )
        return True

    def reactivate(self, reactivated_by):
        """Restore a soft-deleted review. Returns False when it was already active."""
        if self.is_active:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_active = True
            self.active_key = self._key_while_active()
            self.updated_at = now

        self.raise_(
            ReviewReactivated(
                review_id=str(self.id),
                author_id=str(self.author_id),
                target_type=self.target_type,
                target_id=str(self.target_id),
                rating=self.rating.score,
                detailed_ratings=self.detailed_ratings,
                is_verified=self.is_verified,
                reactivated_by=str(reactivated_by),
                reactivated_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Voting
    # -------------------------------------------------------------------
    def vote(self, voter_id, vote_type):
        """Record a helpful/unhelpful vote.

        Cannot vote on own review. Cannot vote twice. Only active reviews.
        """
        if not self.is_active:
            raise ReviewValidationError("Deleted reviews cannot be voted on", field="vote")

        if str(voter_id) == str(self.author_id):
            raise ReviewValidationError("Cannot vote on your own review", field="vote")

        try:
            vote_type = VoteType(vote_type).value
        except ValueError:
            raise ReviewValidationError("Vote must be 'Helpful' or 'Unhelpful'", field="vote_type") from None

        existing = next(
            (v for v in self.votes if str(v.voter_id) == str(voter_id)),
            None,
        )
        if existing:
            raise ReviewValidationError("You have already voted on this review", field="vote")

        now = datetime.now(UTC)

        self.add_votes(
            HelpfulVote(
                voter_id=voter_id,
                vote_type=vote_type,
                voted_at=now,
            )
        )

        with atomic_change(self):
            if vote_type == VoteType.HELPFUL.value:
                self.helpful_count = self.helpful_count + 1
            else:
                self.unhelpful_count = self.unhelpful_count + 1
            self.updated_at = now

        self.raise_(
            HelpfulVoteRecorded(
                review_id=str(self.id),
                voter_id=str(voter_id),
                vote_type=vote_type,
                helpful_count=self.helpful_count,
                unhelpful_count=self.unhelpful_count,
                voted_at=now,
            )
        )
