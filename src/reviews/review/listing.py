"""Read side of the review store: single reviews and paginated listings.

Listings come from the TargetReviews and AuthorReviews projections, which
hold active reviews only. Sorting is done here rather than by the provider
so that ties on rating always fall back to newest-first.
"""

import json
from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviews.domain import setting
from reviews.errors import ReviewNotFound, ReviewValidationError
from reviews.projections.author_reviews import AuthorReviews
from reviews.projections.target_reviews import TargetReviews
from reviews.review.review import Review
from reviews.target.registry import resolve
from reviews.utils.query import fetch_all


class SortBy(Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST_RATING = "highestRating"
    LOWEST_RATING = "lowestRating"


@dataclass
class ReviewPage:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def pages(self) -> int:
        return -(-self.total // self.page_size) if self.total else 0


def page_window(page, page_size) -> tuple[int, int]:
    """Validate paging input and clamp the page size to the configured maximum."""
    if page_size is None:
        page_size = int(setting("default_page_size", 10))
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ReviewValidationError("Page must be a positive integer", field="page")
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ReviewValidationError("Page size must be a positive integer", field="page_size")
    return page, min(page_size, int(setting("max_page_size", 50)))


def sort_reviews(items, sort_by=SortBy.NEWEST.value) -> list:
    try:
        sort_by = SortBy(sort_by)
    except ValueError:
        valid = ", ".join(option.value for option in SortBy)
        raise ReviewValidationError(f"Sort must be one of: {valid}", field="sort_by") from None

    # Newest first is the base order and the tie-breaker for rating sorts
    ordered = sorted(items, key=lambda item: item.created_at, reverse=True)
    if sort_by is SortBy.OLDEST:
        ordered.reverse()
    elif sort_by is SortBy.HIGHEST_RATING:
        ordered.sort(key=lambda item: item.rating, reverse=True)
    elif sort_by is SortBy.LOWEST_RATING:
        ordered.sort(key=lambda item: item.rating)
    return ordered


def _paginate(items, page, page_size) -> ReviewPage:
    start = (page - 1) * page_size
    return ReviewPage(
        items=items[start : start + page_size],
        total=len(items),
        page=page,
        page_size=page_size,
    )


def get_review(review_id, include_inactive=False) -> Review:
    """Fetch a review. Soft-deleted reviews are hidden unless asked for."""
    try:
        review = current_domain.repository_for(Review).get(str(review_id))
    except ObjectNotFoundError:
        raise ReviewNotFound(review_id=str(review_id)) from None
    if not review.is_active and not include_inactive:
        raise ReviewNotFound(review_id=str(review_id))
    return review


def list_by_target(
    target_type,
    target_id,
    page=1,
    page_size=None,
    sort_by=SortBy.NEWEST.value,
    rating=None,
) -> ReviewPage:
    target_type = resolve(target_type).target_type.value
    page, page_size = page_window(page, page_size)
    if rating is not None and (isinstance(rating, bool) or rating not in range(1, 6)):
        raise ReviewValidationError("Rating filter must be between 1 and 5", field="rating")

    filters = {"target_type": target_type, "target_id": str(target_id)}
    if rating is not None:
        filters["rating"] = rating
    items = fetch_all(current_domain.repository_for(TargetReviews), **filters)

    return _paginate(sort_reviews(items, sort_by), page, page_size)


def list_by_author(author_id, page=1, page_size=None, include_inactive=False) -> ReviewPage:
    page, page_size = page_window(page, page_size)

    filters = {"author_id": str(author_id)}
    if not include_inactive:
        filters["is_active"] = True
    items = fetch_all(current_domain.repository_for(AuthorReviews), **filters)

    return _paginate(sort_reviews(items), page, page_size)


def review_to_dict(review) -> dict:
    """Serialize a Review aggregate or a TargetReviews row for responses."""
    if isinstance(review, Review):
        rating = review.rating.score
        review_id = review.id
        is_active = review.is_active
    else:
        rating = review.rating
        review_id = review.review_id
        is_active = True

    return {
        "id": str(review_id),
        "author_id": str(review.author_id),
        "target_type": review.target_type,
        "target_id": str(review.target_id),
        "booking_id": str(review.booking_id) if review.booking_id else None,
        "rating": rating,
        "detailed_ratings": json.loads(review.detailed_ratings) if review.detailed_ratings else {},
        "title": review.title,
        "comment": review.comment,
        "is_active": is_active,
        "is_verified": bool(review.is_verified),
        "is_edited": bool(review.is_edited),
        "helpful_count": review.helpful_count,
        "unhelpful_count": review.unhelpful_count,
        "created_at": review.created_at,
        "updated_at": review.updated_at,
    }


REVIEW_STATUSES = ("all", "active", "inactive")


def list_reviews(
    page=1,
    page_size=None,
    target_type=None,
    status="all",
    rating=None,
    search=None,
    sort_by=SortBy.NEWEST.value,
) -> ReviewPage:
    """Every review on the platform, for administrators.

    Unlike the target and author listings this reads the reviews themselves,
    so soft-deleted reviews can be found and restored. ``search`` matches
    title or comment, ignoring case.
    """
    page, page_size = page_window(page, page_size)
    if status not in REVIEW_STATUSES:
        raise ReviewValidationError(f"Status must be one of: {', '.join(REVIEW_STATUSES)}", field="status")
    if rating is not None and (isinstance(rating, bool) or rating not in range(1, 6)):
        raise ReviewValidationError("Rating filter must be between 1 and 5", field="rating")
    if sort_by not in (SortBy.NEWEST.value, SortBy.OLDEST.value):
        raise ReviewValidationError("Sort must be one of: newest, oldest", field="sort_by")

    filters = {}
    if target_type is not None:
        filters["target_type"] = resolve(target_type).target_type.value
    if status != "all":
        filters["is_active"] = status == "active"
    items = fetch_all(current_domain.repository_for(Review), **filters)

    if rating is not None:
        items = [review for review in items if review.rating.score == rating]
    if search:
        needle = search.casefold()
        items = [
            review
            for review in items
            if needle in (review.comment or "").casefold() or needle in (review.title or "").casefold()
        ]

    items.sort(key=lambda review: review.created_at, reverse=sort_by == SortBy.NEWEST.value)
    return _paginate(items, page, page_size)
