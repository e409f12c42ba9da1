"""
Redis Caching Service

Caches the results of the ranking queries, which scan whole tables.

Features:
- Single Redis connection pool per process
- JSON serialization of cached values
- Graceful degradation: when Redis is disabled or unreachable every
  lookup is a miss and writes are skipped

Cache Strategy:
- Rankings: settings.cache_ttl_rankings
- Keys carry a generation number. Every committed review or reading-list
  change bumps the generation, so a result computed before the write is
  stored under a key nobody reads again
"""

import json
import logging
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from app.config import get_settings

logger = logging.getLogger(__name__)

TOP_REVIEWERS_PREFIX = "rankings:top_reviewers"
FASTEST_READERS_PREFIX = "rankings:fastest_readers"

# Kept outside the ranking prefixes so pattern deletes never reset them
TOP_REVIEWERS_GENERATION = "generation:top_reviewers"
FASTEST_READERS_GENERATION = "generation:fastest_readers"

# =============================================================================
# Redis Connection
# =============================================================================

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create the Redis client.

    Returns None if caching is disabled or Redis cannot be reached.
    """
    global _redis_client

    settings = get_settings()
    if not settings.cache_enabled:
        return None

    if _redis_client is not None:
        return _redis_client

    try:
        _redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        _redis_client.ping()
        logger.info("Successfully connected to Redis")
        return _redis_client
    except RedisError as e:
        logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
        _redis_client = None
        return None


def close_redis_connection() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
        logger.info("Redis connection closed")


# =============================================================================
# Cache Key Generation
# =============================================================================

def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate a consistent cache key from prefix and arguments.

    Examples:
        make_cache_key("rankings:top_reviewers", limit=10)
            -> "rankings:top_reviewers:limit=10"
    """
    parts = [prefix]

    for arg in args:
        if arg is not None:
            parts.append(str(arg))

    for key in sorted(kwargs.keys()):
        value = kwargs[key]
        if value is not None:
            parts.append(f"{key}={value}")

    return ":".join(parts)


# =============================================================================
# Core Cache Operations
# =============================================================================

def cache_get(key: str) -> Optional[Any]:
    """Return the cached value for `key`, or None on miss or error."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        value = client.get(key)
        if value is not None:
            logger.debug(f"Cache HIT: {key}")
            return json.loads(value)
        logger.debug(f"Cache MISS: {key}")
        return None
    except RedisError as e:
        logger.warning(f"Cache get error for {key}: {e}")
        return None
    except json.JSONDecodeError as e:
        logger.warning(f"Cache JSON decode error for {key}: {e}")
        return None


def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    """Store a JSON-serializable value; returns False if it was not cached."""
    client = get_redis_client()
    if client is None:
        return False

    if ttl is None:
        ttl = get_settings().cache_ttl

    try:
        serialized = json.dumps(value, default=str)
        client.setex(key, ttl, serialized)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True
    except RedisError as e:
        logger.warning(f"Cache set error for {key}: {e}")
        return False
    except (TypeError, ValueError) as e:
        logger.warning(f"Cache serialization error for {key}: {e}")
        return False


def cache_delete_pattern(pattern: str) -> int:
    """
    Delete all keys matching a pattern.

    Returns:
        Number of keys deleted
    """
    client = get_redis_client()
    if client is None:
        return 0

    try:
        keys = list(client.scan_iter(match=pattern))
        if keys:
            deleted = client.delete(*keys)
            logger.debug(f"Cache DELETE PATTERN: {pattern} ({deleted} keys)")
            return deleted
        return 0
    except RedisError as e:
        logger.warning(f"Cache delete pattern error for {pattern}: {e}")
        return 0


# =============================================================================
# Generations
# =============================================================================

def get_generation(key: str) -> Optional[int]:
    """
    Current generation number stored at `key` (0 if never bumped).

    Returns None when the cache is unavailable; callers must then neither
    read nor write cached values.
    """
    client = get_redis_client()
    if client is None:
        return None

    try:
        value = client.get(key)
        return int(value) if value is not None else 0
    except RedisError as e:
        logger.warning(f"Cache generation read error for {key}: {e}")
        return None
    except ValueError:
        logger.warning(f"Cache generation at {key} is not a number")
        return None


def bump_generation(key: str) -> None:
    client = get_redis_client()
    if client is None:
        return

    try:
        client.incr(key)
    except RedisError as e:
        logger.warning(f"Cache generation bump error for {key}: {e}")


# =============================================================================
# Cache Invalidation Helpers
# =============================================================================

def invalidate_reviewer_rankings() -> None:
    """Drop cached reviewer rankings. Called after review or user changes commit."""
    bump_generation(TOP_REVIEWERS_GENERATION)
    cache_delete_pattern(f"{TOP_REVIEWERS_PREFIX}*")


def invalidate_reader_rankings() -> None:
    """Drop cached reading-speed rankings. Called after reading-list or user changes commit."""
    bump_generation(FASTEST_READERS_GENERATION)
    cache_delete_pattern(f"{FASTEST_READERS_PREFIX}*")


# =============================================================================
# Cache Statistics (for monitoring)
# =============================================================================

def get_cache_stats() -> dict:
    """Cache status for the health endpoint."""
    client = get_redis_client()
    if client is None:
        return {"status": "disconnected"}

    try:
        info = client.info("stats")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "keys": client.dbsize(),
        }
    except RedisError:
        return {"status": "error"}
