"""Caller-facing errors of the Reviews domain.

Every error carries a stable ``kind`` (the name clients switch on), the HTTP
status the API answers with, and Protean-style ``messages``
(``{field: [message]}``) so it flows through Protean's unit of work and
exception handlers like any other domain error.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class ReviewError:
    """Mixin tagging an exception as a recoverable, caller-facing review error."""

    kind = "ReviewError"
    field = "review"
    status_code = 400
    default_message = "The review request could not be processed"

    def __init__(self, message=None, field=None, **context):
        self.context = {key: value for key, value in context.items() if value is not None}
        super().__init__({field or self.field: [message or self.default_message]})


class BookingNotFound(ReviewError, ObjectNotFoundError):
    kind = "BookingNotFound"
    field = "booking_id"
    status_code = 404
    default_message = "Booking not found"


class BookingNotOwnedByCaller(ReviewError, ValidationError):
    kind = "BookingNotOwnedByCaller"
    field = "booking_id"
    status_code = 403
    default_message = "You can only review your own bookings"


class TargetMismatch(ReviewError, ValidationError):
    kind = "TargetMismatch"
    field = "booking_id"
    default_message = "This booking is not for the item you are reviewing"


class NotEligible(ReviewError, ValidationError):
    kind = "NotEligible"
    field = "booking_id"
    default_message = "You can only review bookings you completed and paid for"


class DuplicateReview(ReviewError, ValidationError):
    kind = "DuplicateReview"
    status_code = 409
    default_message = "You have already reviewed this booking, edit your existing review instead"


class ReviewNotFound(ReviewError, ObjectNotFoundError):
    kind = "ReviewNotFound"
    field = "review_id"
    status_code = 404
    default_message = "Review not found"


class NotOwner(ReviewError, ValidationError):
    kind = "NotOwner"
    field = "caller_id"
    status_code = 403
    default_message = "Only the author of this review can change it"


class ImmutableFieldError(ReviewError, ValidationError):
    kind = "ImmutableFieldError"
    default_message = "Author, target and booking of a review cannot be changed"


class ReviewValidationError(ReviewError, ValidationError):
    kind = "ValidationError"
    default_message = "Invalid review"


class UnknownTargetType(ReviewError, ValidationError):
    kind = "UnknownTargetType"
    field = "target_type"
    default_message = "Unknown target type"
