"""Shared BDD fixtures and step definitions for the Reviews domain."""

import json

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then, when
from reviews.errors import ReviewError
from reviews.rating.statistics import get_statistics
from reviews.review.editing import EditReview
from reviews.review.removal import DeleteReview
from reviews.review.submission import SubmitReview


@pytest.fixture()
def context():
    """Scenario state shared between steps."""
    return {"review_id": None, "author_id": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse(
        'customer "{user_id}" has a {status} booking "{booking_id}" for {target_type} "{target_id}" that is {payment}'
    )
)
def booking(oracle, user_id, status, booking_id, target_type, target_id, payment):
    oracle.record(booking_id, user_id, target_type, target_id, status=status, payment_status=payment)


@given(
    parsers.cfparse('customer "{user_id}" reviewed {target_type} "{target_id}" for booking "{booking_id}" with {rating:d} stars')
)
def reviewed(context, user_id, target_type, target_id, booking_id, rating):
    context["review_id"] = current_domain.process(
        SubmitReview(
            author_id=user_id,
            target_type=target_type,
            target_id=target_id,
            booking_id=booking_id,
            rating=rating,
            comment="Written for a behaviour scenario.",
        ),
        asynchronous=False,
    )
    context["author_id"] = user_id


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('customer "{user_id}" changes the rating to {rating:d}'))
def change_rating(context, user_id, rating):
    current_domain.process(
        EditReview(
            review_id=context["review_id"],
            caller_id=user_id,
            changes=json.dumps({"rating": rating}),
        ),
        asynchronous=False,
    )


@when(parsers.cfparse('customer "{user_id}" deletes the review'))
def delete_review(context, user_id):
    current_domain.process(DeleteReview(review_id=context["review_id"], caller_id=user_id), asynchronous=False)


@when(parsers.cfparse('customer "{user_id}" tries to delete the review'))
def try_delete_review(context, user_id):
    try:
        delete_review(context, user_id)
    except ReviewError as exc:
        context["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the change is refused as "{kind}"'))
def change_refused(context, kind):
    assert context["error"] is not None, "Expected the change to be refused"
    assert context["error"].kind == kind


@then(
    parsers.cfparse(
        '{target_type} "{target_id}" has {total:d} {noun} averaging {average:f} with {count:d} at {star:d} stars'
    )
)
def statistics_are(target_type, target_id, total, noun, average, count, star):
    stats = get_statistics(target_type, target_id)
    assert stats.total_reviews == total
    assert stats.average_rating == average
    assert stats.distribution.get(star) == count
    assert sum(stats.distribution.values()) == total


@then(parsers.cfparse('{target_type} "{target_id}" has no reviews'))
def no_statistics(target_type, target_id):
    stats = get_statistics(target_type, target_id)
    assert stats.total_reviews == 0
    assert stats.average_rating == 0
    assert stats.distribution == {}
