"""Application tests for the eligibility rules."""

import pytest
from protean import current_domain
from reviews.domain import reviews
from reviews.errors import (
    BookingNotFound,
    BookingNotOwnedByCaller,
    ReviewNotFound,
    TargetMismatch,
    UnknownTargetType,
)
from reviews.review.eligibility import (
    ALREADY_REVIEWED,
    BOOKING_NOT_ELIGIBLE,
    BOOKING_REQUIRED,
    NOT_OWNER,
    can_create,
    can_modify,
    is_purchase_complete,
)
from reviews.review.removal import DeleteReview
from reviews.review.submission import SubmitReview


def _submit_review(oracle, **overrides):
    defaults = {
        "author_id": "user-el",
        "target_type": "guide",
        "target_id": "guide-el",
        "booking_id": "booking-el",
        "rating": 5,
        "comment": "Excellent guide, highly recommend!",
    }
    defaults.update(overrides)
    if defaults["booking_id"] and defaults["booking_id"] not in oracle.bookings:
        oracle.record(
            defaults["booking_id"],
            defaults["author_id"],
            defaults["target_type"],
            defaults["target_id"],
        )
    return current_domain.process(SubmitReview(**defaults), asynchronous=False)


class TestPurchaseCompletion:
    @pytest.mark.parametrize(
        "status, payment_status, expected",
        [
            ("completed", "paid", True),
            ("completed", "unpaid", True),
            ("confirmed", "paid", True),
            ("confirmed", "unpaid", False),
            ("pending", "paid", False),
            ("cancelled", "paid", False),
        ],
    )
    def test_predicate(self, oracle, status, payment_status, expected):
        booking = oracle.record("b-pred", "u", "hotel", "h", status=status, payment_status=payment_status)
        assert is_purchase_complete(booking) is expected


class TestCanCreateGating:
    def test_completed_booking_allowed(self, oracle):
        oracle.record("b-1", "user-1", "guide", "guide-1", status="completed")
        result = can_create("user-1", "guide", "guide-1", "b-1")
        assert result.allowed is True
        assert result.reason is None

    def test_pending_booking_not_allowed(self, oracle):
        oracle.record("b-2", "user-1", "guide", "guide-1", status="pending", payment_status="unpaid")
        result = can_create("user-1", "guide", "guide-1", "b-2")
        assert result.allowed is False
        assert result.reason == BOOKING_NOT_ELIGIBLE

    def test_confirmed_and_paid_allowed(self, oracle):
        oracle.record("b-3", "user-1", "hotel", "hotel-1", status="confirmed", payment_status="paid")
        assert can_create("user-1", "hotel", "hotel-1", "b-3").allowed is True

    def test_confirmed_and_unpaid_not_allowed(self, oracle):
        oracle.record("b-4", "user-1", "hotel", "hotel-1", status="confirmed", payment_status="unpaid")
        result = can_create("user-1", "hotel", "hotel-1", "b-4")
        assert result.allowed is False
        assert result.reason == BOOKING_NOT_ELIGIBLE

    def test_status_read_fresh_on_every_call(self, oracle):
        oracle.record("b-5", "user-1", "tour", "tour-1", status="confirmed", payment_status="unpaid")
        assert can_create("user-1", "tour", "tour-1", "b-5").allowed is False

        oracle.update("b-5", payment_status="paid")
        assert can_create("user-1", "tour", "tour-1", "b-5").allowed is True
        assert oracle.lookups == ["b-5", "b-5"]


class TestCanCreateLookupFailures:
    def test_unknown_booking(self):
        with pytest.raises(BookingNotFound) as exc:
            can_create("user-1", "guide", "guide-1", "missing-booking")
        assert exc.value.kind == "BookingNotFound"

    def test_someone_elses_booking(self, oracle):
        oracle.record("b-6", "user-other", "guide", "guide-1")
        with pytest.raises(BookingNotOwnedByCaller):
            can_create("user-1", "guide", "guide-1", "b-6")

    def test_booking_for_another_target(self, oracle):
        oracle.record("b-7", "user-1", "guide", "guide-2")
        with pytest.raises(TargetMismatch):
            can_create("user-1", "guide", "guide-1", "b-7")

    def test_booking_for_another_target_type(self, oracle):
        oracle.record("b-8", "user-1", "vehicle", "guide-1")
        with pytest.raises(TargetMismatch):
            can_create("user-1", "guide", "guide-1", "b-8")

    def test_unknown_target_type(self):
        with pytest.raises(UnknownTargetType):
            can_create("user-1", "museum", "m-1", "b-9")


class TestCanCreateExistingReview:
    def test_already_reviewed_returns_existing_id(self, oracle):
        review_id = _submit_review(oracle, booking_id="b-10")
        result = can_create("user-el", "guide", "guide-el", "b-10")
        assert result.allowed is False
        assert result.reason == ALREADY_REVIEWED
        assert result.existing_review_id == review_id

    def test_deleted_review_frees_the_booking(self, oracle):
        review_id = _submit_review(oracle, booking_id="b-11")
        current_domain.process(
            DeleteReview(review_id=review_id, caller_id="user-el"),
            asynchronous=False,
        )
        assert can_create("user-el", "guide", "guide-el", "b-11").allowed is True

    def test_other_booking_for_same_target_allowed(self, oracle):
        _submit_review(oracle, booking_id="b-12")
        oracle.record("b-13", "user-el", "guide", "guide-el")
        assert can_create("user-el", "guide", "guide-el", "b-13").allowed is True


class TestCanCreateWithoutBooking:
    def test_booking_required_by_default(self):
        result = can_create("user-1", "guide", "guide-1", None)
        assert result.allowed is False
        assert result.reason == BOOKING_REQUIRED

    def test_allowed_when_unverified_reviews_enabled(self, monkeypatch):
        custom = dict(reviews.config["custom"], allow_unverified_reviews=True)
        monkeypatch.setitem(reviews.config, "custom", custom)
        assert can_create("user-1", "guide", "guide-1", None).allowed is True


class TestCanModify:
    def test_author_may_edit_and_delete(self, oracle):
        review_id = _submit_review(oracle, booking_id="b-20")
        assert can_modify("user-el", review_id, "edit").allowed is True
        assert can_modify("user-el", review_id, "delete").allowed is True

    def test_other_user_denied(self, oracle):
        review_id = _submit_review(oracle, booking_id="b-21")
        result = can_modify("user-intruder", review_id, "edit")
        assert result.allowed is False
        assert result.reason == NOT_OWNER

    def test_admin_allowed(self, oracle):
        review_id = _submit_review(oracle, booking_id="b-22")
        assert can_modify("admin-1", review_id, "delete", is_admin=True).allowed is True

    def test_missing_review(self):
        with pytest.raises(ReviewNotFound):
            can_modify("user-el", "no-such-review", "edit")

    def test_deleted_review_counts_as_missing(self, oracle):
        review_id = _submit_review(oracle, booking_id="b-23")
        current_domain.process(
            DeleteReview(review_id=review_id, caller_id="user-el"),
            asynchronous=False,
        )
        with pytest.raises(ReviewNotFound):
            can_modify("user-el", review_id, "edit")
