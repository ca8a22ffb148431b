# unique_jobs/infrastructure/redis_client.py

import redis.asyncio as redis

from unique_jobs.config.settings import get_settings


class RedisClient:
    """Owns the shared redis.asyncio connection pool handed to lock components."""

    def __init__(self, url: str | None = None):
        self.client = redis.from_url(
            url or get_settings().redis_url,
            decode_responses=True,
        )

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self) -> None:
        await self.client.aclose()
