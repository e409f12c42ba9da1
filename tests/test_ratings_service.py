"""
Tests for the Rating Aggregator and the review mutations that drive it.

These call the services directly with a session instead of going
through HTTP.
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.exceptions import InvalidInputError, NotFoundError
from app.models import Book, Review, User
from app.services.ratings import (
    compute_average,
    get_rating_distribution,
    recalculate_all_book_ratings,
    refresh_book_rating,
)
from app.services.reviews import (
    delete_book_reviews,
    delete_review,
    update_review,
    upsert_review,
    validate_rating,
)


class TestComputeAverage:
    """Tests for compute_average()"""

    def test_no_ratings(self):
        assert compute_average(0, 0) is None

    @pytest.mark.parametrize(
        "rating_sum,count,expected",
        [
            (5, 1, Decimal("5.00")),
            (0, 3, Decimal("0.00")),
            (13, 3, Decimal("4.33")),
            (14, 3, Decimal("4.67")),
            (9, 8, Decimal("1.13")),   # 1.125 rounds half up
        ],
    )
    def test_rounding(self, rating_sum, count, expected):
        assert compute_average(rating_sum, count) == expected


class TestValidateRating:
    """Tests for validate_rating()"""

    @pytest.mark.parametrize("rating", [0, 3, 5])
    def test_valid(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [-1, 6, 2.5, "4", True, None])
    def test_invalid(self, rating):
        with pytest.raises(InvalidInputError):
            validate_rating(rating)


class TestRefreshBookRating:
    """Tests for refresh_book_rating()"""

    def test_fixes_drifted_counters(self, db_session: Session, sample_book: Book, make_users):
        for user, rating in zip(make_users(2), [2, 5]):
            db_session.add(Review(book_id=sample_book.id, user_id=user.id, rating=rating))
        sample_book.review_count = 99
        db_session.commit()

        book = refresh_book_rating(db_session, sample_book.id)
        db_session.commit()

        assert book.review_count == 2
        assert book.average_rating == Decimal("3.50")

    def test_no_reviews_sets_null(self, db_session: Session, sample_book: Book):
        sample_book.review_count = 3
        sample_book.average_rating = Decimal("4.00")
        db_session.commit()

        book = refresh_book_rating(db_session, sample_book.id)

        assert book.review_count == 0
        assert book.average_rating is None

    def test_unknown_book(self, db_session: Session):
        with pytest.raises(NotFoundError):
            refresh_book_rating(db_session, 99999)


class TestRecalculateAll:
    """Tests for recalculate_all_book_ratings()"""

    def test_recalculates_every_book(
        self, db_session: Session, sample_book: Book, second_book: Book, sample_user: User
    ):
        db_session.add(Review(book_id=sample_book.id, user_id=sample_user.id, rating=4))
        second_book.review_count = 7
        db_session.commit()

        assert recalculate_all_book_ratings(db_session) == 2

        db_session.refresh(sample_book)
        db_session.refresh(second_book)
        assert (sample_book.review_count, sample_book.average_rating) == (1, Decimal("4.00"))
        assert (second_book.review_count, second_book.average_rating) == (0, None)


class TestReviewMutations:
    """Tests for the review service functions."""

    def test_upsert_creates_then_updates(self, db_session: Session, sample_book: Book, sample_user: User):
        review, created = upsert_review(db_session, sample_book.id, sample_user.id, 3, "ok")
        assert created is True

        again, created = upsert_review(db_session, sample_book.id, sample_user.id, 5)
        assert created is False
        assert again.id == review.id
        assert again.rating == 5

        db_session.refresh(sample_book)
        assert sample_book.review_count == 1
        assert sample_book.average_rating == Decimal("5.00")

    def test_invalid_rating_writes_nothing(self, db_session: Session, sample_book: Book, sample_user: User):
        with pytest.raises(InvalidInputError):
            upsert_review(db_session, sample_book.id, sample_user.id, 9)

        db_session.refresh(sample_book)
        assert sample_book.review_count == 0
        assert db_session.query(Review).count() == 0

    def test_update_review_rejects_unknown_fields(self, db_session: Session, sample_review: Review):
        with pytest.raises(InvalidInputError):
            update_review(db_session, sample_review.id, {"book_id": 2})

    def test_update_and_delete(self, db_session: Session, sample_review: Review, second_user: User):
        book_id, review_id = sample_review.book_id, sample_review.id
        upsert_review(db_session, book_id, second_user.id, 2)

        update_review(db_session, review_id, {"rating": 0})
        book = db_session.get(Book, book_id, populate_existing=True)
        assert book.average_rating == Decimal("1.00")

        delete_review(db_session, review_id)
        book = db_session.get(Book, book_id, populate_existing=True)
        assert book.review_count == 1
        assert book.average_rating == Decimal("2.00")

    def test_delete_missing_review(self, db_session: Session):
        with pytest.raises(NotFoundError):
            delete_review(db_session, 99999)

    def test_delete_book_reviews(self, db_session: Session, sample_book: Book, make_users):
        for user in make_users(3):
            upsert_review(db_session, sample_book.id, user.id, 4)

        assert delete_book_reviews(db_session, sample_book.id) == 3

        db_session.refresh(sample_book)
        assert sample_book.review_count == 0
        assert sample_book.average_rating is None

    def test_distribution(self, db_session: Session, sample_book: Book, make_users):
        for user, rating in zip(make_users(4), [0, 5, 5, 3]):
            upsert_review(db_session, sample_book.id, user.id, rating)

        assert get_rating_distribution(db_session, sample_book.id) == {
            0: 1, 1: 0, 2: 0, 3: 1, 4: 0, 5: 2,
        }
