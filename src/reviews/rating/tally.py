"""RatingTally — the arithmetic behind per-target rating statistics.

A tally holds the star distribution, the number of verified reviews and a
running ``[sum, count]`` per detailed-rating category. Totals and averages
are always derived from those counters, never stored next to them, so the
count, distribution and average cannot disagree with one another.
"""

import json

import structlog

logger = structlog.get_logger(__name__)

STARS = (1, 2, 3, 4, 5)


def mean(weighted_sum, count, digits=1):
    if count == 0:
        return 0.0
    return round(weighted_sum / count, digits)


class RatingTally:
    def __init__(self, distribution=None, verified=0, categories=None):
        self.distribution = {star: 0 for star in STARS}
        for star, count in (distribution or {}).items():
            self.distribution[int(star)] = int(count)
        self.verified = int(verified or 0)
        self.categories = {name: list(pair) for name, pair in (categories or {}).items()}

    @classmethod
    def from_record(cls, record) -> "RatingTally":
        return cls(
            distribution=json.loads(record.rating_distribution) if record.rating_distribution else None,
            verified=record.verified_review_count,
            categories=json.loads(record.category_totals) if record.category_totals else None,
        )

    @classmethod
    def fold(cls, reviews) -> "RatingTally":
        """Build a tally from scratch over a set of active reviews."""
        tally = cls()
        for review in reviews:
            tally.apply(review.rating.score, review.detailed, review.is_verified)
        return tally

    # -------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------
    def apply(self, rating, detailed=None, verified=False, sign=1):
        """Add (``sign=1``) or withdraw (``sign=-1``) one review."""
        self.distribution[rating] = self._bounded(self.distribution[rating] + sign, f"star {rating}")
        if verified:
            self.verified = self._bounded(self.verified + sign, "verified")

        for name, score in (detailed or {}).items():
            total, count = self.categories.get(name, [0, 0])
            total = self._bounded(total + sign * score, f"{name} sum")
            count = self._bounded(count + sign, f"{name} count")
            if count:
                self.categories[name] = [total, count]
            else:
                self.categories.pop(name, None)

    def _bounded(self, value, counter):
        if value < 0:
            # Counters drifted from the review set; reconciliation restores them
            logger.warning("rating_tally_underflow", counter=counter)
            return 0
        return value

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def total(self) -> int:
        return sum(self.distribution.values())

    @property
    def average(self) -> float:
        return mean(sum(star * count for star, count in self.distribution.items()), self.total)

    def nonzero_distribution(self) -> dict[int, int]:
        return {star: count for star, count in self.distribution.items() if count}

    def category_averages(self) -> dict[str, float]:
        return {name: mean(total, count) for name, (total, count) in sorted(self.categories.items()) if count}

    def dump_distribution(self) -> str:
        return json.dumps({str(star): count for star, count in self.distribution.items()})

    def dump_categories(self) -> str:
        return json.dumps(self.categories)

    def write_to(self, record, updated_at=None):
        record.rating_distribution = self.dump_distribution()
        record.category_totals = self.dump_categories()
        record.total_reviews = self.total
        record.average_rating = self.average
        record.verified_review_count = self.verified
        if updated_at is not None:
            record.updated_at = updated_at
        return record

    def __eq__(self, other):
        if not isinstance(other, RatingTally):
            return NotImplemented
        return (
            self.distribution == other.distribution
            and self.verified == other.verified
            and self.categories == other.categories
        )
