"""Tests for the load cache."""

import asyncio

import pytest

from code_variants.pipeline.cache import LoadSourceCache


class TestLoadSourceCache:
    """Tests for LoadSourceCache."""

    @pytest.fixture
    def calls(self):
        """Record of identifiers actually loaded."""
        return []

    @pytest.fixture
    def load(self, calls):
        """Slow loader that records its calls."""

        async def _load(url):
            calls.append(url)
            await asyncio.sleep(0.01)
            return {"source": f"content of {url}"}

        return _load

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_load(self, load, calls):
        """Test that concurrent requests for one identifier load it once."""
        cache = LoadSourceCache()

        results = await asyncio.gather(
            cache.get_or_load("https://x/a.js", load),
            cache.get_or_load("https://x/a.js", load),
            cache.get_or_load("https://x/a.js", load),
        )

        assert calls == ["https://x/a.js"]
        assert all(result == {"source": "content of https://x/a.js"} for result in results)

    @pytest.mark.asyncio
    async def test_repeated_requests_reuse_result(self, load, calls):
        """Test that a completed load is reused."""
        cache = LoadSourceCache()

        first = await cache.get_or_load("https://x/a.js", load)
        second = await cache.get_or_load("https://x/a.js", load)

        assert first is second
        assert len(calls) == 1
        assert "https://x/a.js" in cache
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_different_identifiers(self, load, calls):
        """Test that different identifiers are loaded separately."""
        cache = LoadSourceCache()

        await asyncio.gather(
            cache.get_or_load("https://x/a.js", load),
            cache.get_or_load("https://x/b.js", load),
        )

        assert sorted(calls) == ["https://x/a.js", "https://x/b.js"]

    @pytest.mark.asyncio
    async def test_failure_shared_by_waiters(self):
        """Test that every waiter sees the failure of the shared load."""
        cache = LoadSourceCache()
        attempts = []

        async def failing(url):
            attempts.append(url)
            await asyncio.sleep(0)
            raise OSError("boom")

        results = await asyncio.gather(
            cache.get_or_load("https://x/a.js", failing),
            cache.get_or_load("https://x/a.js", failing),
            return_exceptions=True,
        )

        assert len(attempts) == 1
        assert all(isinstance(result, OSError) for result in results)

    @pytest.mark.asyncio
    async def test_separate_caches_do_not_share(self, load, calls):
        """Test that each cache instance loads on its own."""
        await LoadSourceCache().get_or_load("https://x/a.js", load)
        await LoadSourceCache().get_or_load("https://x/a.js", load)
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_clear(self, load, calls):
        """Test that clearing forgets completed loads."""
        cache = LoadSourceCache()
        await cache.get_or_load("https://x/a.js", load)
        cache.clear()
        await cache.get_or_load("https://x/a.js", load)
        assert len(calls) == 2
