"""Per-project build lease in Redis."""

import uuid

import redis.asyncio as redis

from shared.logging_config import get_logger

logger = get_logger(__name__)

# Delete the key only while it still holds our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class BuildLease:
    """At most one running build per project.

    The lease expires on its own after `ttl_seconds`, so a crashed worker
    cannot block the project for longer than one build budget.
    """

    KEY_PREFIX = "build-lease"

    def __init__(self, client: redis.Redis, project_id: str, ttl_seconds: float):
        self.client = client
        self.project_id = project_id
        self.key = f"{self.KEY_PREFIX}:{project_id}"
        self.ttl_ms = int(ttl_seconds * 1000)
        self.token = uuid.uuid4().hex
        self.held = False

    async def acquire(self) -> bool:
        self.held = bool(await self.client.set(self.key, self.token, nx=True, px=self.ttl_ms))
        if not self.held:
            logger.info("build_lease_busy", project_id=self.project_id)
        return self.held

    async def release(self) -> None:
        """Release only if this holder still owns the key."""
        if not self.held:
            return
        self.held = False
        released = await self.client.eval(RELEASE_SCRIPT, 1, self.key, self.token)
        if not released:
            logger.warning("build_lease_lost", project_id=self.project_id)
