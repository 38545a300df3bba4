"""Tests for the Redis build lease and usage counters."""

from datetime import UTC, datetime

import fakeredis
import pytest

from builder.generation.lease import BuildLease
from builder.generation.usage import USAGE_TTL_SECONDS, UsageMeter


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.mark.asyncio
async def test_second_lease_is_refused(redis_client):
    first = BuildLease(redis_client, "proj-1", ttl_seconds=300)
    second = BuildLease(redis_client, "proj-1", ttl_seconds=300)

    assert await first.acquire()
    assert not await second.acquire()
    assert 0 < await redis_client.pttl("build-lease:proj-1") <= 300_000


@pytest.mark.asyncio
async def test_leases_are_per_project(redis_client):
    assert await BuildLease(redis_client, "proj-1", 300).acquire()
    assert await BuildLease(redis_client, "proj-2", 300).acquire()


@pytest.mark.asyncio
async def test_release_frees_project(redis_client):
    first = BuildLease(redis_client, "proj-1", 300)
    await first.acquire()
    await first.release()

    assert await BuildLease(redis_client, "proj-1", 300).acquire()


@pytest.mark.asyncio
async def test_release_does_not_delete_foreign_lease(redis_client):
    stale = BuildLease(redis_client, "proj-1", 300)
    await stale.acquire()
    # Lease expired and another request took over
    await redis_client.set("build-lease:proj-1", "other-token")

    await stale.release()

    assert await redis_client.get("build-lease:proj-1") == "other-token"


@pytest.mark.asyncio
async def test_release_is_a_single_compare_and_delete(redis_client, monkeypatch):
    holder = BuildLease(redis_client, "proj-1", 300)
    await holder.acquire()

    async def forbidden(*args, **kwargs):
        raise AssertionError("release must not read and delete in separate calls")

    monkeypatch.setattr(redis_client, "get", forbidden)
    monkeypatch.setattr(redis_client, "delete", forbidden)

    await holder.release()

    assert await redis_client.exists("build-lease:proj-1") == 0


@pytest.mark.asyncio
async def test_release_after_expiry_leaves_key_absent(redis_client):
    holder = BuildLease(redis_client, "proj-1", 300)
    await holder.acquire()
    await redis_client.delete("build-lease:proj-1")

    await holder.release()

    assert await redis_client.exists("build-lease:proj-1") == 0


@pytest.mark.asyncio
async def test_release_without_acquire_is_noop(redis_client):
    holder = BuildLease(redis_client, "proj-1", 300)
    await holder.acquire()

    await BuildLease(redis_client, "proj-1", 300).release()

    assert await redis_client.get("build-lease:proj-1") == holder.token


def test_usage_key_is_monthly():
    assert UsageMeter.key("proj-1", datetime(2026, 3, 9, tzinfo=UTC)) == "usage:proj-1:2026-03"


@pytest.mark.asyncio
async def test_usage_increment(redis_client):
    meter = UsageMeter(redis_client)

    assert await meter.increment("proj-1") == 1
    assert await meter.increment("proj-1") == 2  # noqa: PLR2004

    key = UsageMeter.key("proj-1")
    assert 0 < await redis_client.ttl(key) <= USAGE_TTL_SECONDS
