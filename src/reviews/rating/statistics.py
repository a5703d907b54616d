"""Rating statistics for targets and for the platform as a whole.

This is the only place statistics are assembled. Totals and averages are
derived from the stored distribution at read time, so every response has a
count, distribution and average that agree with one another.
"""

from dataclasses import asdict, dataclass, field

from protean.utils.globals import current_domain

from reviews.domain import setting
from reviews.projections.target_rating import TargetRating, load_target_rating
from reviews.rating.tally import RatingTally
from reviews.review.listing import SortBy, list_by_target, review_to_dict
from reviews.target.registry import TargetType, resolve
from reviews.utils.query import fetch_all


@dataclass
class RatingStatistics:
    target_type: str
    target_id: str
    total_reviews: int = 0
    average_rating: float = 0.0
    distribution: dict = field(default_factory=dict)
    verified_reviews: int = 0
    category_averages: dict = field(default_factory=dict)
    recent_reviews: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def get_statistics(target_type, target_id, page=1, page_size=None, sort_by=SortBy.NEWEST.value):
    """Statistics for one target plus a page of its reviews (newest first by default)."""
    target_type = resolve(target_type).target_type.value
    if page_size is None:
        page_size = int(setting("recent_reviews_size", 5))

    record = load_target_rating(target_type, target_id)
    tally = RatingTally.from_record(record) if record is not None else RatingTally()
    reviews_page = list_by_target(target_type, target_id, page=page, page_size=page_size, sort_by=sort_by)

    return RatingStatistics(
        target_type=target_type,
        target_id=str(target_id),
        total_reviews=tally.total,
        average_rating=tally.average,
        distribution=tally.nonzero_distribution(),
        verified_reviews=tally.verified,
        category_averages=tally.category_averages(),
        recent_reviews=[review_to_dict(item) for item in reviews_page.items],
    )


def platform_statistics() -> dict:
    """Review totals per target type, for the admin dashboard."""
    records = fetch_all(current_domain.repository_for(TargetRating))

    per_type = {target_type.value: RatingTally() for target_type in TargetType}
    targets = {target_type.value: 0 for target_type in TargetType}
    overall = RatingTally()
    for record in records:
        tally = RatingTally.from_record(record)
        if not tally.total:
            continue
        targets[record.target_type] += 1
        for star, count in tally.distribution.items():
            per_type[record.target_type].distribution[star] += count
            overall.distribution[star] += count
        per_type[record.target_type].verified += tally.verified
        overall.verified += tally.verified

    return {
        "total_reviews": overall.total,
        "average_rating": overall.average,
        "distribution": overall.nonzero_distribution(),
        "verified_reviews": overall.verified,
        "by_target_type": {
            name: {
                "targets_reviewed": targets[name],
                "total_reviews": tally.total,
                "average_rating": tally.average,
                "distribution": tally.nonzero_distribution(),
            }
            for name, tally in per_type.items()
        },
    }
