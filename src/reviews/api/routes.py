"""FastAPI routes for the Reviews & Ratings bounded context.

Each route translates between Pydantic schemas (external contract) and
Protean commands or read services (internal domain concepts). The caller's
identity and admin capability come from the auth context headers, never
from the request body.
"""

import json

from fastapi import APIRouter, Depends, Response
from protean.utils.globals import current_domain

from reviews.api.dependencies import CallerContext, admin_context, caller_context
from reviews.api.schemas import (
    AuthorReviewPageResponse,
    AuthorReviewResponse,
    EligibilityResponse,
    RatingStatisticsResponse,
    ReconcileRatingsRequest,
    ReconcileRatingsResponse,
    ReviewPageResponse,
    ReviewResponse,
    SetReviewActiveRequest,
    StatusResponse,
    SubmitReviewRequest,
    UpdateReviewRequest,
    VoteOnReviewRequest,
    VoteResponse,
)
from reviews.errors import NotOwner
from reviews.rating.reconciliation import ReconcileTargetRatings
from reviews.rating.statistics import get_statistics, platform_statistics
from reviews.review.editing import EditReview
from reviews.review.eligibility import can_create
from reviews.review.listing import (
    get_review,
    list_by_author,
    list_by_target,
    list_reviews,
    review_to_dict,
)
from reviews.review.removal import DeleteReview, SetReviewActive, set_review_active
from reviews.review.review import check_rating
from reviews.review.submission import SubmitReview, submit_review
from reviews.review.voting import VoteOnReview

review_router = APIRouter(prefix="/reviews", tags=["reviews"])


def _review_response(review) -> ReviewResponse:
    return ReviewResponse(**review_to_dict(review))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
@review_router.post("", status_code=201, response_model=ReviewResponse)
async def create_review(
    body: SubmitReviewRequest,
    caller: CallerContext = Depends(caller_context),
) -> ReviewResponse:
    """Review a completed booking."""
    check_rating(body.rating)
    command = SubmitReview(
        author_id=caller.caller_id,
        target_type=body.target_type,
        target_id=body.target_id,
        booking_id=body.booking_id,
        rating=body.rating,
        title=body.title,
        comment=body.comment,
        detailed_ratings=json.dumps(body.detailed_ratings) if body.detailed_ratings else None,
    )
    review_id = submit_review(command)
    return _review_response(get_review(review_id))


@review_router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    body: UpdateReviewRequest,
    caller: CallerContext = Depends(caller_context),
) -> ReviewResponse:
    """Change rating, title, comment or detailed ratings of a review."""
    command = EditReview(
        review_id=review_id,
        caller_id=caller.caller_id,
        is_admin=caller.is_admin,
        changes=json.dumps(body.model_dump(exclude_unset=True)),
    )
    current_domain.process(command, asynchronous=False)
    return _review_response(get_review(review_id))


@review_router.delete("/{review_id}", status_code=204)
async def delete_review(
    review_id: str,
    caller: CallerContext = Depends(caller_context),
) -> Response:
    """Soft-delete a review. Deleting twice is not an error."""
    command = DeleteReview(
        review_id=review_id,
        caller_id=caller.caller_id,
        is_admin=caller.is_admin,
    )
    current_domain.process(command, asynchronous=False)
    return Response(status_code=204)


@review_router.post("/{review_id}/votes", status_code=201, response_model=VoteResponse)
async def vote_on_review(
    review_id: str,
    body: VoteOnReviewRequest,
    caller: CallerContext = Depends(caller_context),
) -> VoteResponse:
    """Vote on whether a review is helpful."""
    command = VoteOnReview(
        review_id=review_id,
        voter_id=caller.caller_id,
        vote_type=body.vote_type,
    )
    helpful, unhelpful = current_domain.process(command, asynchronous=False)
    return VoteResponse(helpful_count=helpful, unhelpful_count=unhelpful)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@review_router.get("/eligibility", response_model=EligibilityResponse)
async def review_eligibility(
    target_type: str,
    target_id: str,
    booking_id: str | None = None,
    caller: CallerContext = Depends(caller_context),
) -> EligibilityResponse:
    """May the caller review this booking right now?"""
    eligibility = can_create(caller.caller_id, target_type, target_id, booking_id)
    return EligibilityResponse(**eligibility.to_dict())


@review_router.get("/statistics", response_model=dict)
async def review_platform_statistics(
    caller: CallerContext = Depends(admin_context),
) -> dict:
    """Review totals across the platform, per target type."""
    return platform_statistics()


@review_router.get(
    "/targets/{target_type}/{target_id}/statistics",
    response_model=RatingStatisticsResponse,
)
async def target_statistics(
    target_type: str,
    target_id: str,
    page: int = 1,
    page_size: int | None = None,
    sort_by: str = "newest",
) -> RatingStatisticsResponse:
    """Rating statistics for a target with its most recent reviews."""
    statistics = get_statistics(target_type, target_id, page=page, page_size=page_size, sort_by=sort_by)
    return RatingStatisticsResponse(**statistics.to_dict())


@review_router.get("/targets/{target_type}/{target_id}", response_model=ReviewPageResponse)
async def target_reviews(
    target_type: str,
    target_id: str,
    page: int = 1,
    page_size: int | None = None,
    sort_by: str = "newest",
    rating: int | None = None,
) -> ReviewPageResponse:
    """Active reviews of a target, one page at a time."""
    result = list_by_target(
        target_type,
        target_id,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        rating=rating,
    )
    return ReviewPageResponse(
        items=[_review_response(item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@review_router.get("/authors/{author_id}", response_model=AuthorReviewPageResponse)
async def author_reviews(
    author_id: str,
    page: int = 1,
    page_size: int | None = None,
    caller: CallerContext = Depends(caller_context),
) -> AuthorReviewPageResponse:
    """A customer's review history, deleted reviews included. Only the author and admins may read it."""
    if not caller.is_admin and caller.caller_id != author_id:
        raise NotOwner("You can only view your own review history", field="author_id")
    result = list_by_author(author_id, page=page, page_size=page_size, include_inactive=True)
    return AuthorReviewPageResponse(
        items=[
            AuthorReviewResponse(
                id=str(item.review_id),
                target_type=item.target_type,
                target_id=str(item.target_id),
                booking_id=str(item.booking_id) if item.booking_id else None,
                rating=item.rating,
                title=item.title,
                is_active=item.is_active,
                created_at=item.created_at,
                updated_at=item.updated_at,
            )
            for item in result.items
        ],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@review_router.get("/{review_id}", response_model=ReviewResponse)
async def read_review(review_id: str) -> ReviewResponse:
    """A single active review."""
    return _review_response(get_review(review_id))


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------
@review_router.get("", response_model=ReviewPageResponse)
async def all_reviews(
    page: int = 1,
    page_size: int | None = None,
    target_type: str | None = None,
    status: str = "all",
    rating: int | None = None,
    search: str | None = None,
    sort_by: str = "newest",
    caller: CallerContext = Depends(admin_context),
) -> ReviewPageResponse:
    """Every review, deleted ones included, filtered for the admin dashboard."""
    result = list_reviews(
        page=page,
        page_size=page_size,
        target_type=target_type,
        status=status,
        rating=rating,
        search=search,
        sort_by=sort_by,
    )
    return ReviewPageResponse(
        items=[_review_response(item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@review_router.put("/{review_id}/status", response_model=StatusResponse)
async def set_review_active(
    review_id: str,
    body: SetReviewActiveRequest,
    caller: CallerContext = Depends(admin_context),
) -> StatusResponse:
    """Deactivate or restore a review."""
    command = SetReviewActive(
        review_id=review_id,
        active=body.active,
        admin_id=caller.caller_id,
    )
    set_review_active(command)
    return StatusResponse()


@review_router.post("/maintenance/reconcile-ratings", response_model=ReconcileRatingsResponse)
async def reconcile_ratings(
    body: ReconcileRatingsRequest | None = None,
    caller: CallerContext = Depends(admin_context),
) -> ReconcileRatingsResponse:
    """Rebuild stored rating statistics from the active reviews."""
    body = body or ReconcileRatingsRequest()
    command = ReconcileTargetRatings(target_type=body.target_type, target_id=body.target_id)
    corrected = current_domain.process(command, asynchronous=False)
    return ReconcileRatingsResponse(corrected=corrected)
