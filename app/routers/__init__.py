"""
API Routers Package

Router Structure:
- books.py: /api/v1/books/* catalog and counter endpoints
- categories.py: /api/v1/categories/* and book <-> category links
- reviews.py: review endpoints and book rating statistics
- reading_list.py: /api/v1/reading-list/* endpoints
- users.py: /api/v1/users/* endpoints
- stats.py: /api/v1/stats/* ranking endpoints

Each router is imported and registered in main.py.
"""

from app.routers.books import router as books_router
from app.routers.categories import router as categories_router
from app.routers.reading_list import router as reading_list_router
from app.routers.reviews import router as reviews_router
from app.routers.stats import router as stats_router
from app.routers.users import router as users_router

__all__ = [
    "books_router",
    "categories_router",
    "reviews_router",
    "reading_list_router",
    "users_router",
    "stats_router",
]
