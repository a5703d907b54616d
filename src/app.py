"""TourBook Reviews FastAPI application.

Web server for review eligibility, reviews and rating statistics. Commands
are processed synchronously via HTTP; every request under ``/reviews`` is
wrapped in the reviews domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (projectors fire in UoW)
#   - "production" → event_processing = "async" (projectors fire via Engine)
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers
from reviews.domain import reviews
from reviews.utils.logging import bind_request, configure_logging

configure_logging()
reviews.init()

logger = structlog.get_logger(__name__)

_DOMAIN_PREFIX = "/reviews"


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="TourBook Reviews API",
    description="Review eligibility, reviews and rating statistics for guides, hotels, vehicles, tours and custom trips",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the reviews domain context and tag log lines with a request id."""
    if not request.url.path.startswith(_DOMAIN_PREFIX):
        # Health check, docs, etc.
        return await call_next(request)

    bind_request(
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        caller_id=request.headers.get("x-caller-id"),
    )
    with reviews.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from reviews.api import register_review_exception_handlers, review_router  # noqa: E402

app.include_router(review_router)
register_exception_handlers(app)
register_review_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "reviews": {"name": reviews.name},
            },
        }
    )
