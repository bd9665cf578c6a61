"""Unit tests for the result cache."""

import asyncio
import hashlib

import pytest

from esg_intelligence.cache import CacheKey, InMemoryStore, ResultCache

PAYLOAD = {"query": "what is cbam", "response": "CBAM is a carbon border levy."}


class YieldingStore(InMemoryStore):
    """Suspends after each read, like a networked store."""

    async def find_by_key(self, key):
        entry = await super().find_by_key(key)
        await asyncio.sleep(0)
        return entry


class TestResultCache:
    """Content addressing, TTL and fail-open behaviour."""

    def test_hash_query_normalizes(self):
        expected = hashlib.sha256("what is esg?".encode()).hexdigest()

        assert ResultCache.hash_query("  What Is ESG?  ") == expected
        assert ResultCache.hash_query("what is esg?") == expected
        assert ResultCache.hash_query("what is esg") != expected

    @pytest.mark.asyncio
    async def test_put_then_get(self, result_cache):
        await result_cache.put("What is CBAM", PAYLOAD)

        assert await result_cache.get("what is cbam") == PAYLOAD

    @pytest.mark.asyncio
    async def test_repeated_reads_return_same_payload(self, result_cache, memory_store):
        await result_cache.put("what is cbam", PAYLOAD)

        first = await result_cache.get("what is cbam")
        second = await result_cache.get("  WHAT IS CBAM ")

        assert first == second == PAYLOAD
        entry = await memory_store.find_by_key(CacheKey.for_query("what is cbam"))
        assert entry.hit_count == 2

    @pytest.mark.asyncio
    async def test_miss(self, result_cache):
        assert await result_cache.get("never asked") is None
        assert result_cache.stats.misses == 1

    @pytest.mark.asyncio
    async def test_namespaces_are_separate(self, result_cache):
        await result_cache.put("what is cbam", PAYLOAD, namespace="query")

        assert await result_cache.get("what is cbam", namespace="smart_search") is None
        assert await result_cache.get("what is cbam", namespace="query") == PAYLOAD

    @pytest.mark.asyncio
    async def test_expired_entry_not_served_before_sweep(self, result_cache, memory_store, clock):
        await result_cache.put("what is cbam", PAYLOAD)

        clock.advance(24 * 3600 - 1)
        assert await result_cache.get("what is cbam") == PAYLOAD

        clock.advance(2)
        assert await result_cache.get("what is cbam") is None
        assert len(memory_store) == 1

        assert await result_cache.sweep_expired() == 1
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_sweep_keeps_live_entries(self, result_cache, memory_store, clock):
        await result_cache.put("old question", PAYLOAD)
        clock.advance(25 * 3600)
        await result_cache.put("new question", PAYLOAD)

        assert await result_cache.sweep_expired() == 1
        assert await result_cache.get("new question") == PAYLOAD

    @pytest.mark.asyncio
    async def test_put_upserts(self, result_cache, memory_store):
        await result_cache.put("what is cbam", PAYLOAD)
        await result_cache.get("what is cbam")
        await result_cache.put("What is CBAM", {"response": "updated"})

        assert len(memory_store) == 1
        entry = await memory_store.find_by_key(CacheKey.for_query("what is cbam"))
        assert entry.hit_count == 0
        assert entry.response_payload == {"response": "updated"}

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self, failing_store, clock):
        cache = ResultCache(failing_store, clock=clock)

        assert await cache.get("what is cbam") is None
        assert cache.stats.errors == 1
        assert cache.stats.misses == 1

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, failing_store, clock):
        cache = ResultCache(failing_store, clock=clock)

        await cache.put("what is cbam", PAYLOAD)

        assert cache.stats.errors == 1
        assert cache.stats.writes == 0
        assert await cache.sweep_expired() == 0

    @pytest.mark.asyncio
    async def test_popular_orders_by_hits(self, result_cache):
        await result_cache.put("rarely asked", PAYLOAD)
        await result_cache.put("often asked", PAYLOAD)
        for _ in range(3):
            await result_cache.get("often asked")
        await result_cache.get("rarely asked")

        popular = await result_cache.popular(limit=1)

        assert [p["query"] for p in popular] == ["often asked"]
        assert popular[0]["hit_count"] == 3

    @pytest.mark.asyncio
    async def test_invalidate_by_pattern(self, result_cache):
        await result_cache.put("EU CBAM timeline", PAYLOAD)
        await result_cache.put("cbam cost estimate", PAYLOAD)
        await result_cache.put("plastic recycling targets", PAYLOAD)

        assert await result_cache.invalidate("CBAM") == 2
        assert await result_cache.get("plastic recycling targets") == PAYLOAD

    @pytest.mark.asyncio
    async def test_stats(self, result_cache, clock):
        await result_cache.put("what is cbam", PAYLOAD)
        await result_cache.get("what is cbam")
        await result_cache.get("unknown")

        stats = await result_cache.get_stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 50.0
        assert stats["live_entries"] == 1
        assert stats["total_hits"] == 1
        assert stats["available"] is True

    @pytest.mark.asyncio
    async def test_stats_when_store_down(self, failing_store, clock):
        cache = ResultCache(failing_store, clock=clock)

        stats = await cache.get_stats()

        assert stats["available"] is False
        assert stats["live_entries"] is None

    @pytest.mark.asyncio
    async def test_health_check(self, result_cache):
        health = await result_cache.health_check()

        assert health["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_hit_does_not_resurrect_invalidated_entry(self, clock):
        cache = ResultCache(YieldingStore(), clock=clock)
        await cache.put("carbon border levy", PAYLOAD)

        served, removed = await asyncio.gather(
            cache.get("carbon border levy"), cache.invalidate("carbon")
        )

        assert served == PAYLOAD
        assert removed == 1
        assert await cache.get("carbon border levy") is None

    @pytest.mark.asyncio
    async def test_hit_does_not_overwrite_newer_write(self, clock):
        store = YieldingStore()
        cache = ResultCache(store, clock=clock)
        await cache.put("carbon border levy", {"v": 1})

        clock.advance(60)
        await asyncio.gather(
            cache.get("carbon border levy"), cache.put("carbon border levy", {"v": 2})
        )

        entry = await store.find_by_key(CacheKey.for_query("carbon border levy"))
        assert entry.response_payload == {"v": 2}
        assert entry.created_at.timestamp() == clock()
        assert entry.hit_count == 1
