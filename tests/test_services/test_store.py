"""Tests for the in-memory snapshot store."""

import pytest


class TestSnapshotStore:
    """Test suite for SnapshotStore."""

    @pytest.mark.asyncio
    async def test_get_unknown_key_is_empty(self, store):
        assert await store.get("products") == []

    @pytest.mark.asyncio
    async def test_put_then_get(self, store):
        await store.put("products", ["a", "b"])

        assert await store.get("products") == ["a", "b"]
        snapshot = await store.snapshot("products")
        assert snapshot.is_loaded
        assert snapshot.hits == 1

    @pytest.mark.asyncio
    async def test_error_keeps_previous_data(self, store):
        await store.put("products", ["a"])

        await store.record_error("products", "Request timed out")

        snapshot = await store.snapshot("products")
        assert snapshot.data == ["a"]
        assert snapshot.last_error == "Request timed out"
        assert store.get_stats()["failures"] == 1

    @pytest.mark.asyncio
    async def test_error_before_first_load(self, store):
        await store.record_error("documents", "boom")

        snapshot = await store.snapshot("documents")
        assert not snapshot.is_loaded
        assert snapshot.data == []

    @pytest.mark.asyncio
    async def test_successful_put_clears_error(self, store):
        await store.record_error("products", "boom")
        await store.put("products", ["a"])

        snapshot = await store.snapshot("products")
        assert snapshot.last_error is None

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.put("products", ["a"])
        await store.put("documents", ["d"])

        assert await store.clear() == 2
        assert await store.get("products") == []
        assert store.get_stats()["resources"] == 0
