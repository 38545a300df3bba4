"""Monthly generation counters."""

from datetime import UTC, datetime

import redis.asyncio as redis

USAGE_TTL_SECONDS = 40 * 24 * 3600


class UsageMeter:
    def __init__(self, client: redis.Redis):
        self.client = client

    @staticmethod
    def key(project_id: str, now: datetime | None = None) -> str:
        now = now or datetime.now(UTC)
        return f"usage:{project_id}:{now:%Y-%m}"

    async def increment(self, project_id: str) -> int:
        key = self.key(project_id)
        count = await self.client.incr(key)
        await self.client.expire(key, USAGE_TTL_SECONDS)
        return int(count)
