"""Pydantic request/response schemas for the Reviews API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.

Rating and comment rules are left to the domain so that violations come back
with the same error kind whichever client sent them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    target_type: str
    target_id: str
    booking_id: str | None = None
    rating: Any
    title: str | None = Field(default=None, max_length=100)
    comment: str
    detailed_ratings: dict[str, Any] | None = None


class UpdateReviewRequest(BaseModel):
    """A partial update. Fields left out are not touched."""

    model_config = ConfigDict(extra="forbid")

    rating: Any = None
    title: str | None = Field(default=None, max_length=100)
    comment: str | None = None
    detailed_ratings: dict[str, Any] | None = None

    # Accepted only so they can be rejected as immutable
    author_id: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    booking_id: str | None = None


class VoteOnReviewRequest(BaseModel):
    vote_type: str  # "Helpful" or "Unhelpful"


class SetReviewActiveRequest(BaseModel):
    active: bool


class ReconcileRatingsRequest(BaseModel):
    target_type: str | None = None
    target_id: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class ReviewResponse(BaseModel):
    id: str
    author_id: str
    target_type: str
    target_id: str
    booking_id: str | None = None
    rating: int
    detailed_ratings: dict[str, int] = Field(default_factory=dict)
    title: str | None = None
    comment: str
    is_active: bool = True
    is_verified: bool = False
    is_edited: bool = False
    helpful_count: int = 0
    unhelpful_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReviewPageResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
    page: int
    page_size: int
    pages: int


class AuthorReviewResponse(BaseModel):
    id: str
    target_type: str
    target_id: str
    booking_id: str | None = None
    rating: int
    title: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthorReviewPageResponse(BaseModel):
    items: list[AuthorReviewResponse]
    total: int
    page: int
    page_size: int
    pages: int


class EligibilityResponse(BaseModel):
    allowed: bool
    reason: str | None = None
    existing_review_id: str | None = None


class RatingStatisticsResponse(BaseModel):
    target_type: str
    target_id: str
    total_reviews: int
    average_rating: float
    distribution: dict[int, int]
    verified_reviews: int = 0
    category_averages: dict[str, float] = Field(default_factory=dict)
    recent_reviews: list[ReviewResponse] = Field(default_factory=list)


class VoteResponse(BaseModel):
    helpful_count: int
    unhelpful_count: int


class ReconcileRatingsResponse(BaseModel):
    corrected: int


class StatusResponse(BaseModel):
    status: str = "ok"
