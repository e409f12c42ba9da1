"""
Services Package

Business logic kept out of the routers. Every function takes the database
session as its first argument and raises app.exceptions errors.

Aggregate maintenance:
- ratings.py: review_count / average_rating recomputation
- list_counts.py: added_to_list_count increments
- reviews.py: review mutations (each refreshes its book's ratings)
- reading_list.py: reading-list mutations (new entries bump the list count)
- rankings.py: top reviewers and fastest readers

Infrastructure:
- transactions.py: commit/rollback boundary with conflict retries
- locking.py: per-book in-process write locks
- users.py: user registration and deletion
- cache.py: Redis caching of ranking results
- rate_limiter.py: slowapi limiter
- security.py: password hashing
"""
