"""
Tests for User Endpoints

Tests:
- Registration (validation, uniqueness, password hashing)
- Get / list users
- Updating a user
- Deleting a user, which also removes their reviews and refreshes the
  rating aggregates of every book they reviewed
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.exceptions import InvalidInputError
from app.models import Book, Review, User
from app.services import users as user_service
from app.services.reading_list import add_entry
from app.services.reviews import upsert_review
from app.services.security import pwd_context
from app.services.users import update_user


# =============================================================================
# Create User
# =============================================================================


class TestCreateUser:
    """Tests for POST /api/v1/users/"""

    def test_create_user(self, client: TestClient, db_session: Session):
        response = client.post(
            "/api/v1/users/",
            json={
                "email": "newreader@example.com",
                "username": "NewReader",
                "password": "ReadMore123",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["username"] == "newreader"
        assert data["email"] == "newreader@example.com"
        assert "password" not in data
        assert "hashed_password" not in data

        user = db_session.get(User, data["id"])
        assert user.hashed_password != "ReadMore123"
        assert pwd_context.verify("ReadMore123", user.hashed_password)

    def test_create_user_duplicate_username(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/users/",
            json={
                "email": "other@example.com",
                "username": "testuser",
                "password": "ReadMore123",
            },
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already taken" in response.json()["detail"]

    def test_create_user_duplicate_email(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/users/",
            json={
                "email": "testuser@example.com",
                "username": "someoneelse",
                "password": "ReadMore123",
            },
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.parametrize(
        "password",
        [
            "short1A",        # Too short
            "alllowercase1",  # No uppercase
            "ALLUPPERCASE1",  # No lowercase
            "NoNumbersHere",  # No digit
        ],
    )
    def test_create_user_weak_password(self, client: TestClient, password: str):
        response = client.post(
            "/api/v1/users/",
            json={"email": "weak@example.com", "username": "weak", "password": password},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_user_invalid_username(self, client: TestClient):
        response = client.post(
            "/api/v1/users/",
            json={"email": "x@example.com", "username": "1reader", "password": "ReadMore123"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_user_invalid_email(self, client: TestClient):
        response = client.post(
            "/api/v1/users/",
            json={"email": "not-an-email", "username": "reader", "password": "ReadMore123"},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# Get / List Users
# =============================================================================


class TestGetUser:
    """Tests for GET /api/v1/users/ and /api/v1/users/{user_id}"""

    def test_get_user(self, client: TestClient, sample_user: User):
        response = client.get(f"/api/v1/users/{sample_user.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["username"] == "testuser"

    def test_get_user_not_found(self, client: TestClient):
        response = client.get("/api/v1/users/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_users(self, client: TestClient, make_users):
        make_users(12)

        response = client.get("/api/v1/users/?per_page=5&page=3")

        data = response.json()
        assert data["total"] == 12
        assert data["pages"] == 3
        assert [u["username"] for u in data["items"]] == ["reader11", "reader12"]


# =============================================================================
# Update User
# =============================================================================


class TestUpdateUser:
    """Tests for PUT /api/v1/users/{user_id}"""

    def test_update_picture(self, client: TestClient, sample_user: User):
        response = client.put(
            f"/api/v1/users/{sample_user.id}",
            json={"picture": "avatar.png"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["picture"] == "avatar.png"
        assert response.json()["username"] == "testuser"

    def test_update_password_is_hashed(
        self, client: TestClient, sample_user: User, db_session: Session
    ):
        response = client.put(
            f"/api/v1/users/{sample_user.id}",
            json={"password": "BrandNew456"},
        )

        assert response.status_code == status.HTTP_200_OK
        db_session.refresh(sample_user)
        assert pwd_context.verify("BrandNew456", sample_user.hashed_password)

    def test_update_to_taken_username(
        self, client: TestClient, sample_user: User, second_user: User
    ):
        response = client.put(
            f"/api/v1/users/{sample_user.id}",
            json={"username": "seconduser"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_update_own_username_unchanged(self, client: TestClient, sample_user: User):
        response = client.put(
            f"/api/v1/users/{sample_user.id}",
            json={"username": "testuser"},
        )

        assert response.status_code == status.HTTP_200_OK

    @pytest.mark.parametrize("field", ["username", "email"])
    def test_update_null_required_field(self, client: TestClient, sample_user: User, field: str):
        response = client.put(f"/api/v1/users/{sample_user.id}", json={field: None})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_service_null_username_is_invalid_input(
        self, db_session: Session, sample_user: User
    ):
        user_id = sample_user.id

        with pytest.raises(InvalidInputError):
            update_user(db_session, user_id, {"username": None})

        assert db_session.get(User, user_id).username == "testuser"

    def test_update_user_not_found(self, client: TestClient):
        response = client.put("/api/v1/users/99999", json={"picture": "a.png"})

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Delete User
# =============================================================================


class TestDeleteUser:
    """Tests for DELETE /api/v1/users/{user_id}"""

    def test_delete_user(self, client: TestClient, sample_user: User):
        user_id = sample_user.id

        response = client.delete(f"/api/v1/users/{user_id}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/v1/users/{user_id}").status_code == 404

    def test_delete_user_refreshes_book_aggregates(
        self,
        client: TestClient,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_user: User,
        second_user: User,
    ):
        upsert_review(db_session, sample_book.id, sample_user.id, 5)
        upsert_review(db_session, sample_book.id, second_user.id, 1)
        upsert_review(db_session, second_book.id, sample_user.id, 3)
        add_entry(db_session, sample_user.id, sample_book.id)
        user_id = sample_user.id

        client.delete(f"/api/v1/users/{user_id}")

        first = client.get(f"/api/v1/books/{sample_book.id}").json()
        assert first["review_count"] == 1
        assert Decimal(first["average_rating"]) == Decimal("1.00")
        # The list counter counts additions, not current entries
        assert first["added_to_list_count"] == 1

        second = client.get(f"/api/v1/books/{second_book.id}").json()
        assert second["review_count"] == 0
        assert second["average_rating"] is None

        assert db_session.query(Review).filter_by(user_id=user_id).count() == 0

    def test_delete_user_not_found(self, client: TestClient):
        response = client.delete("/api/v1/users/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_user_widens_locks_for_books_reviewed_meanwhile(
        self,
        db_session: Session,
        sample_book: Book,
        second_book: Book,
        sample_user: User,
    ):
        upsert_review(db_session, sample_book.id, sample_user.id, 5)
        upsert_review(db_session, second_book.id, sample_user.id, 3)
        user_id = sample_user.id
        first_id, second_id = sample_book.id, second_book.id
        real_lookup = user_service._reviewed_book_ids
        calls = []

        def stale_first_lookup(db, uid):
            calls.append(uid)
            # The first lookup predates the review of second_book
            if len(calls) == 1:
                return {first_id}
            return real_lookup(db, uid)

        with patch.object(user_service, "_reviewed_book_ids", side_effect=stale_first_lookup):
            with patch.object(user_service, "book_locks", wraps=user_service.book_locks) as locks:
                user_service.delete_user(db_session, user_id)

        assert [set(c.args[0]) for c in locks.call_args_list] == [
            {first_id},
            {first_id, second_id},
        ]
        assert db_session.get(User, user_id) is None
        for book_id in (first_id, second_id):
            book = db_session.get(Book, book_id)
            assert book.review_count == 0
            assert book.average_rating is None
