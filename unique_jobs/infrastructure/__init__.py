"""Infrastructure: Redis connection provider."""

from unique_jobs.infrastructure.redis_client import RedisClient

__all__ = ["RedisClient"]
