"""
Tests for Books API Endpoints

This module tests the CRUD operations and rankings of /api/v1/books.

TEST NAMING CONVENTION:
- test_<action>_<scenario>
- Examples: test_create_book_success, test_get_book_not_found

Each test should:
- Test one thing (single assertion concept)
- Be independent (no reliance on other tests)
- Be descriptive (name explains what's tested)
"""

from decimal import Decimal

import pytest
from fastapi import status
from sqlalchemy import func, select

from app.models import Review
from app.services.reading_list import add_entry
from app.services.reviews import upsert_review


class TestListBooks:
    """Tests for GET /api/v1/books/ endpoint."""

    def test_list_books_empty(self, client):
        """Test listing books when database is empty."""
        response = client.get("/api/v1/books/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0
        assert data["page"] == 1
        assert data["pages"] == 0

    def test_list_books_with_data(self, client, sample_book):
        """Test listing books returns expected data."""
        response = client.get("/api/v1/books/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert len(data["items"]) == 1
        assert data["items"][0]["title"] == "1984"
        assert data["items"][0]["categories"][0]["name"] == "Dystopian"

    def test_list_books_pagination(self, client, multiple_books):
        """Test pagination works correctly."""
        # First page
        response = client.get("/api/v1/books/?page=1&per_page=5")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data["items"]) == 5
        assert data["total"] == 15
        assert data["page"] == 1
        assert data["pages"] == 3

        # Second page
        response = client.get("/api/v1/books/?page=2&per_page=5")
        data = response.json()
        assert len(data["items"]) == 5
        assert data["page"] == 2

    def test_list_books_invalid_pagination(self, client):
        """Test that invalid pagination params are rejected."""
        # Page must be >= 1
        response = client.get("/api/v1/books/?page=0")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        # per_page must be <= 100
        response = client.get("/api/v1/books/?per_page=101")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_filter_by_title_prefix(self, client, sample_book, second_book):
        """Title filter is a case-insensitive prefix match."""
        response = client.get("/api/v1/books/?title=anim")

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Animal Farm"

    def test_filter_title_is_not_substring(self, client, second_book):
        response = client.get("/api/v1/books/?title=farm")

        assert response.json()["total"] == 0

    def test_filter_by_author_and_year(self, client, multiple_books):
        response = client.get("/api/v1/books/?author=JANE&publish_year=1900")

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["title"] == "Test Book 1"

    def test_filter_escapes_wildcards(self, client, sample_book):
        """A literal % in the filter does not match everything."""
        response = client.get("/api/v1/books/?title=%25")

        assert response.json()["total"] == 0


class TestGetBook:
    """Tests for GET /api/v1/books/{book_id} endpoint."""

    def test_get_book_success(self, client, sample_book):
        """Test getting an existing book."""
        response = client.get(f"/api/v1/books/{sample_book.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == sample_book.id
        assert data["title"] == "1984"
        assert data["author"] == "George Orwell"
        assert data["publish_year"] == 1949

    def test_new_book_has_empty_aggregates(self, client, sample_book):
        data = client.get(f"/api/v1/books/{sample_book.id}").json()

        assert data["review_count"] == 0
        assert data["average_rating"] is None
        assert data["added_to_list_count"] == 0

    def test_get_book_not_found(self, client):
        """Test getting a non-existent book returns 404."""
        response = client.get("/api/v1/books/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "not found" in response.json()["detail"]


class TestCreateBook:
    """Tests for POST /api/v1/books/ endpoint."""

    def test_create_book_minimal(self, client):
        """Test creating a book with only required fields."""
        response = client.post("/api/v1/books/", json={"title": "Minimal Book"})

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["title"] == "Minimal Book"
        assert data["id"] is not None
        assert data["categories"] == []

    def test_create_book_full(self, client, sample_category):
        """Test creating a book with all fields."""
        book_data = {
            "title": "Brave New World",
            "author": "Aldous Huxley",
            "publish_year": 1932,
            "description": "A genetically engineered future.",
            "summary": "Soma and conditioning.",
            "book_photo": "brave-new-world.jpg",
            "html_content": "brave-new-world.html",
            "category_ids": [sample_category.id],
        }

        response = client.post("/api/v1/books/", json=book_data)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["author"] == "Aldous Huxley"
        assert data["book_photo"] == "brave-new-world.jpg"
        assert [c["id"] for c in data["categories"]] == [sample_category.id]

    def test_create_book_ignores_counters(self, client):
        """Aggregate counters cannot be set by the client."""
        response = client.post(
            "/api/v1/books/",
            json={"title": "Sneaky", "review_count": 50, "average_rating": "5.00"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["review_count"] == 0
        assert response.json()["average_rating"] is None

    def test_create_book_empty_title(self, client):
        """Test that whitespace-only titles are rejected."""
        response = client.post("/api/v1/books/", json={"title": "   "})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_book_invalid_category_id(self, client):
        """Test that invalid category IDs are rejected."""
        response = client.post(
            "/api/v1/books/",
            json={"title": "Test Book", "category_ids": [99999]},
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "99999" in response.json()["detail"]


class TestUpdateBook:
    """Tests for PUT /api/v1/books/{book_id} endpoint."""

    def test_update_book_title(self, client, sample_book):
        """Test updating book title."""
        response = client.put(
            f"/api/v1/books/{sample_book.id}",
            json={"title": "Nineteen Eighty-Four"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["title"] == "Nineteen Eighty-Four"
        # Other fields unchanged
        assert data["author"] == "George Orwell"
        assert len(data["categories"]) == 1

    def test_update_book_clears_categories(self, client, sample_book):
        response = client.put(f"/api/v1/books/{sample_book.id}", json={"category_ids": []})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["categories"] == []

    def test_update_keeps_aggregates(self, client, sample_review):
        response = client.put(
            f"/api/v1/books/{sample_review.book_id}",
            json={"description": "Updated"},
        )

        data = response.json()
        assert data["review_count"] == 1
        assert Decimal(data["average_rating"]) == Decimal("4.00")

    def test_update_book_null_title(self, client, sample_book):
        """An explicit null title is rejected, not stored or reported as a duplicate."""
        response = client.put(f"/api/v1/books/{sample_book.id}", json={"title": None})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert client.get(f"/api/v1/books/{sample_book.id}").json()["title"] == "1984"

    def test_update_book_null_author_clears_it(self, client, sample_book):
        response = client.put(f"/api/v1/books/{sample_book.id}", json={"author": None})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["author"] is None

    def test_update_book_not_found(self, client):
        """Test updating non-existent book returns 404."""
        response = client.put("/api/v1/books/99999", json={"title": "New Title"})

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDeleteBook:
    """Tests for DELETE /api/v1/books/{book_id} endpoint."""

    def test_delete_book_success(self, client, sample_book):
        """Test deleting an existing book."""
        response = client.delete(f"/api/v1/books/{sample_book.id}")

        assert response.status_code == status.HTTP_204_NO_CONTENT

        # Verify book is gone
        response = client.get(f"/api/v1/books/{sample_book.id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_book_removes_reviews(self, client, sample_review, db_session):
        client.delete(f"/api/v1/books/{sample_review.book_id}")

        assert db_session.execute(select(func.count(Review.id))).scalar() == 0

    def test_delete_book_not_found(self, client):
        """Test deleting non-existent book returns 404."""
        response = client.delete("/api/v1/books/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestBookRankings:
    """Tests for GET /api/v1/books/top and /api/v1/books/top-rated."""

    def test_top_by_list_count(self, client, db_session, sample_book, second_book, make_users):
        users = make_users(3)
        for user in users:
            add_entry(db_session, user.id, second_book.id)
        add_entry(db_session, users[0].id, sample_book.id)

        response = client.get("/api/v1/books/top?limit=2")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [b["id"] for b in data] == [second_book.id, sample_book.id]
        assert data[0]["added_to_list_count"] == 3

    def test_top_rated_puts_unrated_last(
        self, client, db_session, sample_book, second_book, multiple_books, sample_user
    ):
        upsert_review(db_session, second_book.id, sample_user.id, 5)
        upsert_review(db_session, sample_book.id, sample_user.id, 2)

        data = client.get("/api/v1/books/top-rated?limit=3").json()

        assert [b["id"] for b in data[:2]] == [second_book.id, sample_book.id]
        assert data[2]["average_rating"] is None

    @pytest.mark.parametrize("limit", [0, 101])
    def test_top_invalid_limit(self, client, limit):
        response = client.get(f"/api/v1/books/top?limit={limit}")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestBookValidation:
    """Tests for book data validation."""

    def test_average_rating_rounding_is_documented(self, client):
        schemas = client.get("/openapi.json").json()["components"]["schemas"]

        description = schemas["BookResponse"]["properties"]["average_rating"]["description"]
        assert "rounded half-up to 2 decimal places" in description

    @pytest.mark.parametrize(
        "publish_year,valid",
        [
            (1949, True),
            (0, True),
            (2100, True),
            (-1, False),     # Must not be negative
            (2101, False),   # Too far in the future
        ],
    )
    def test_publish_year_validation(self, client, publish_year, valid):
        """Test publish year bounds."""
        book_data = {"title": "Test Book", "publish_year": publish_year}

        response = client.post("/api/v1/books/", json=book_data)

        if valid:
            assert response.status_code == status.HTTP_201_CREATED
        else:
            assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
