"""Application tests for SubmitReview command handling."""

import json
import threading

import pytest
from protean import current_domain
from reviews.domain import reviews
from reviews.errors import (
    BookingNotFound,
    BookingNotOwnedByCaller,
    DuplicateReview,
    NotEligible,
    ReviewValidationError,
    TargetMismatch,
)
from reviews.review.claims import claims
from reviews.review.removal import DeleteReview
from reviews.review.repository import ReviewRepository
from reviews.review.review import Review
from reviews.review.submission import SubmitReview, submit_review


def _submit_review(**overrides):
    defaults = {
        "author_id": "user-sub",
        "target_type": "guide",
        "target_id": "guide-sub",
        "booking_id": "booking-sub",
        "rating": 5,
        "comment": "Excellent guide, highly recommend!",
    }
    defaults.update(overrides)
    return current_domain.process(SubmitReview(**defaults), asynchronous=False)


def _active_reviews(author_id, booking_id):
    return [
        r
        for r in current_domain.repository_for(Review)._dao.query.filter(author_id=author_id).all().items
        if r.is_active and str(r.booking_id) == booking_id
    ]


class TestSubmitReview:
    def test_submit_persists_review(self, oracle):
        oracle.record("b-s1", "user-s1", "guide", "guide-s1")
        review_id = _submit_review(author_id="user-s1", target_id="guide-s1", booking_id="b-s1")

        review = current_domain.repository_for(Review).get(review_id)
        assert review.rating.score == 5
        assert review.is_active is True
        assert review.is_verified is True

    def test_repository_is_custom(self):
        assert isinstance(current_domain.repository_for(Review), ReviewRepository)

    def test_submit_with_detailed_ratings(self, oracle):
        oracle.record("b-s2", "user-s2", "hotel", "hotel-s2")
        review_id = _submit_review(
            author_id="user-s2",
            target_type="hotel",
            target_id="hotel-s2",
            booking_id="b-s2",
            title="Great stay",
            detailed_ratings=json.dumps({"cleanliness": 5, "value": 4}),
        )
        review = current_domain.repository_for(Review).get(review_id)
        assert review.detailed == {"cleanliness": 5, "value": 4}
        assert review.title == "Great stay"

    def test_invalid_rating_rejected(self, oracle):
        oracle.record("b-s3", "user-s3", "guide", "guide-s3")
        with pytest.raises(ReviewValidationError):
            _submit_review(author_id="user-s3", target_id="guide-s3", booking_id="b-s3", rating=6)

    def test_short_comment_rejected(self, oracle):
        oracle.record("b-s4", "user-s4", "guide", "guide-s4")
        with pytest.raises(ReviewValidationError):
            _submit_review(author_id="user-s4", target_id="guide-s4", booking_id="b-s4", comment="Nice")


class TestSubmitEligibility:
    def test_pending_booking_not_eligible(self, oracle):
        oracle.record("b-e1", "user-e1", "guide", "guide-e1", status="pending", payment_status="unpaid")
        with pytest.raises(NotEligible) as exc:
            _submit_review(author_id="user-e1", target_id="guide-e1", booking_id="b-e1")
        assert "completed and paid for" in str(exc.value)

    def test_confirmed_and_paid_eligible(self, oracle):
        oracle.record("b-e2", "user-e2", "tour", "tour-e2", status="confirmed", payment_status="paid")
        assert _submit_review(author_id="user-e2", target_type="tour", target_id="tour-e2", booking_id="b-e2")

    def test_unknown_booking(self):
        with pytest.raises(BookingNotFound):
            _submit_review(author_id="user-e3", target_id="guide-e3", booking_id="b-none")

    def test_booking_of_another_user(self, oracle):
        oracle.record("b-e4", "user-owner", "guide", "guide-e4")
        with pytest.raises(BookingNotOwnedByCaller):
            _submit_review(author_id="user-e4", target_id="guide-e4", booking_id="b-e4")

    def test_booking_for_another_target(self, oracle):
        oracle.record("b-e5", "user-e5", "guide", "guide-other")
        with pytest.raises(TargetMismatch):
            _submit_review(author_id="user-e5", target_id="guide-e5", booking_id="b-e5")

    def test_without_booking_rejected_by_default(self):
        with pytest.raises(NotEligible) as exc:
            _submit_review(author_id="user-e6", booking_id=None)
        assert exc.value.context["reason"] == "booking required"

    def test_without_booking_is_unverified_when_enabled(self, monkeypatch):
        custom = dict(reviews.config["custom"], allow_unverified_reviews=True)
        monkeypatch.setitem(reviews.config, "custom", custom)

        first = _submit_review(author_id="user-e7", booking_id=None)
        second = _submit_review(author_id="user-e7", booking_id=None)

        repo = current_domain.repository_for(Review)
        assert first != second
        assert repo.get(first).is_verified is False
        assert repo.get(second).is_verified is False


class TestOneActiveReviewPerBooking:
    def test_second_submission_is_duplicate(self, oracle):
        oracle.record("b-d1", "user-d1", "guide", "guide-d1")
        first = _submit_review(author_id="user-d1", target_id="guide-d1", booking_id="b-d1")

        with pytest.raises(DuplicateReview) as exc:
            _submit_review(author_id="user-d1", target_id="guide-d1", booking_id="b-d1", rating=1)

        assert exc.value.context["existing_review_id"] == first
        assert exc.value.status_code == 409
        assert len(_active_reviews("user-d1", "b-d1")) == 1

    def test_create_delete_create_keeps_one_active(self, oracle):
        oracle.record("b-d2", "user-d2", "guide", "guide-d2")

        for _ in range(3):
            review_id = _submit_review(author_id="user-d2", target_id="guide-d2", booking_id="b-d2")
            assert len(_active_reviews("user-d2", "b-d2")) == 1
            current_domain.process(
                DeleteReview(review_id=review_id, caller_id="user-d2"),
                asynchronous=False,
            )
            assert _active_reviews("user-d2", "b-d2") == []

    def test_repository_guard_catches_lost_race(self, oracle):
        # Both writers passed eligibility before either stored its review
        oracle.record("b-d3", "user-d3", "guide", "guide-d3")
        drafts = [
            Review.submit(
                author_id="user-d3",
                target_type="guide",
                target_id="guide-d3",
                booking_id="b-d3",
                rating=rating,
                comment="Racing to review the same booking.",
                is_verified=True,
            )
            for rating in (5, 4)
        ]

        repo = current_domain.repository_for(Review)
        repo.add_active(drafts[0])
        with pytest.raises(DuplicateReview) as exc:
            repo.add_active(drafts[1])

        assert exc.value.context["existing_review_id"] == str(drafts[0].id)
        assert len(_active_reviews("user-d3", "b-d3")) == 1

    def test_concurrent_submissions_store_one_review(self, oracle):
        oracle.record("b-d4", "user-d4", "guide", "guide-d4")
        barrier = threading.Barrier(2)
        outcomes = []

        def submit(rating):
            with reviews.domain_context():
                barrier.wait()
                try:
                    submit_review(
                        SubmitReview(
                            author_id="user-d4",
                            target_type="guide",
                            target_id="guide-d4",
                            booking_id="b-d4",
                            rating=rating,
                            comment="Racing to review the same booking.",
                        )
                    )
                    outcomes.append("stored")
                except DuplicateReview:
                    outcomes.append("duplicate")

        writers = [threading.Thread(target=submit, args=(rating,)) for rating in (5, 4)]
        for writer in writers:
            writer.start()
        for writer in writers:
            writer.join(timeout=10)

        assert sorted(outcomes) == ["duplicate", "stored"]
        assert len(_active_reviews("user-d4", "b-d4")) == 1
        assert claims.held() == 0

    def test_claimed_submission_returns_review_id(self, oracle):
        oracle.record("b-d5", "user-d5", "guide", "guide-d5")
        review_id = submit_review(
            SubmitReview(
                author_id="user-d5",
                target_type="guide",
                target_id="guide-d5",
                booking_id="b-d5",
                rating=4,
                comment="Patient guide who knew the trails well.",
            )
        )
        assert current_domain.repository_for(Review).get(review_id).is_active is True
        assert claims.held() == 0
