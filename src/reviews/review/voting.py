"""VoteOnReview — record a helpful/unhelpful vote on a review.

Cannot vote on own review. Cannot vote twice. Deleted reviews take no votes.
"""

from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.eligibility import load_active_review
from reviews.review.review import Review


@reviews.command(part_of="Review")
class VoteOnReview:
    review_id = Identifier(required=True)
    voter_id = Identifier(required=True)
    vote_type = String(required=True)  # "Helpful" or "Unhelpful"


@reviews.command_handler(part_of=Review)
class VoteOnReviewHandler:
    @handle(VoteOnReview)
    def vote_on_review(self, command):
        review = load_active_review(command.review_id)

        review.vote(
            voter_id=command.voter_id,
            vote_type=command.vote_type,
        )

        current_domain.repository_for(Review).add(review)
        return review.helpful_count, review.unhelpful_count
