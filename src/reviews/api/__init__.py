"""Reviews domain API package."""

from reviews.api.errors import register_review_exception_handlers
from reviews.api.routes import review_router

__all__ = ["review_router", "register_review_exception_handlers"]
