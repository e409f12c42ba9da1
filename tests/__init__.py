"""
Test Suite for the Reading Tracker API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_books.py, test_categories.py, test_users.py: catalog and user endpoints
- test_reviews.py, test_reading_list.py: writes and the aggregates they keep
- test_ratings_service.py, test_rankings.py: service-level computations
- test_transactions.py, test_locking.py, test_concurrency.py: write safety
- test_cache.py, test_health.py: ambient infrastructure

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_reviews.py

    # Run with verbose output
    pytest -v
"""
