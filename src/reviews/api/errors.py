"""HTTP mapping for review errors.

Each review error answers with its own status code and a body naming its
``kind``, so clients can react to, say, ``DuplicateReview`` by offering to
edit the existing review. Plain Protean errors fall through to Protean's
own handlers.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reviews.errors import (
    BookingNotFound,
    BookingNotOwnedByCaller,
    DuplicateReview,
    ImmutableFieldError,
    NotEligible,
    NotOwner,
    ReviewNotFound,
    ReviewValidationError,
    TargetMismatch,
    UnknownTargetType,
)

logger = structlog.get_logger(__name__)

REVIEW_ERRORS = (
    BookingNotFound,
    BookingNotOwnedByCaller,
    TargetMismatch,
    NotEligible,
    DuplicateReview,
    ReviewNotFound,
    NotOwner,
    ImmutableFieldError,
    ReviewValidationError,
    UnknownTargetType,
)


async def review_error_handler(request: Request, exc) -> JSONResponse:
    logger.info(
        "review_request_rejected",
        path=request.url.path,
        kind=exc.kind,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.messages, "kind": exc.kind, **exc.context},
    )


def register_review_exception_handlers(app: FastAPI) -> None:
    for error_class in REVIEW_ERRORS:
        app.add_exception_handler(error_class, review_error_handler)
