"""ReconcileTargetRatings — rebuild rating records from the reviews themselves.

Incremental counters can drift from the active review set if a delta is
lost (a crash between the review write and its projection update, or a
projection replay gone wrong). This command recomputes each target's tally
from its active reviews and overwrites the stored record where they differ.
Records for targets with no active reviews left are zeroed.

Runs for a single target when ``target_type`` and ``target_id`` are given,
otherwise for every target that has reviews or a rating record.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.errors import ReviewValidationError
from reviews.projections.target_rating import TargetRating, load_target_rating, rating_key
from reviews.rating.tally import RatingTally
from reviews.review.review import Review
from reviews.target.registry import resolve
from reviews.utils.query import fetch_all

logger = structlog.get_logger(__name__)


@reviews.command(part_of="Review")
class ReconcileTargetRatings:
    target_type = String(max_length=20)
    target_id = Identifier()


def _targets_in_scope(command):
    review_repo = current_domain.repository_for(Review)

    if command.target_type or command.target_id:
        if not (command.target_type and command.target_id):
            raise ReviewValidationError("Give both target type and target id, or neither", field="target_id")
        target_type = resolve(command.target_type).target_type.value
        return {(target_type, str(command.target_id)): review_repo.active_for_target(target_type, command.target_id)}

    scope = {}
    for record in fetch_all(current_domain.repository_for(TargetRating)):
        scope[(record.target_type, str(record.target_id))] = []
    for review in review_repo.all_active():
        scope.setdefault((review.target_type, str(review.target_id)), []).append(review)
    return scope


@reviews.command_handler(part_of=Review)
class ReconciliationHandler:
    @handle(ReconcileTargetRatings)
    def reconcile(self, command):
        rating_repo = current_domain.repository_for(TargetRating)
        now = datetime.now(UTC)
        corrected = 0

        for (target_type, target_id), active in _targets_in_scope(command).items():
            expected = RatingTally.fold(active)
            record = load_target_rating(target_type, target_id)

            if record is None:
                if not expected.total:
                    continue
                record = TargetRating(
                    rating_key=rating_key(target_type, target_id),
                    target_type=target_type,
                    target_id=target_id,
                )
            elif RatingTally.from_record(record) == expected:
                continue

            logger.warning(
                "rating_record_corrected",
                target_type=target_type,
                target_id=target_id,
                expected_total=expected.total,
                stored_total=record.total_reviews,
            )
            rating_repo.add(expected.write_to(record, now))
            corrected += 1

        logger.info("rating_reconciliation_finished", corrected=corrected)
        return corrected
