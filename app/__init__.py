"""
Reading Tracker API Application Package

Book catalog with reviews and reading lists. Every book carries three
aggregate counters (review_count, average_rating, added_to_list_count)
that the service layer keeps consistent under concurrent writes.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and store lifecycle
- exceptions.py: Service-layer error types
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Aggregate maintenance, rankings, transactions, caching
- utils/: Date/time helpers
"""

__version__ = "1.0.0"
