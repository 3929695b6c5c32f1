"""Unit tests for InMemoryKV."""

import pytest

from common.kv import InMemoryKV


class Ticker:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


@pytest.fixture
def ticker():
    return Ticker()


@pytest.fixture
def mem(ticker):
    return InMemoryKV(clock=ticker)


class TestInMemoryKV:
    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, mem):
        assert await mem.get("nope") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, mem):
        await mem.set("k", b"v")
        assert await mem.get("k") == b"v"

    @pytest.mark.asyncio
    async def test_ttl_expires_key(self, mem, ticker):
        await mem.set("k", b"v", ttl_seconds=60)
        ticker.t += 59
        assert await mem.get("k") == b"v"
        ticker.t += 1
        assert await mem.get("k") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, mem):
        await mem.delete("nope")

    @pytest.mark.asyncio
    async def test_list_keys_by_prefix_sorted_and_limited(self, mem):
        for name in ["user:email:c", "user:email:a", "user:id:1", "user:email:b"]:
            await mem.set(name, b"x", metadata={"n": name})

        keys = await mem.list_keys(prefix="user:email:")
        assert [k.name for k in keys] == ["user:email:a", "user:email:b", "user:email:c"]
        assert keys[0].metadata == {"n": "user:email:a"}

        limited = await mem.list_keys(prefix="user:email:", limit=2)
        assert [k.name for k in limited] == ["user:email:a", "user:email:b"]

    @pytest.mark.asyncio
    async def test_list_with_zero_limit_is_empty(self, mem):
        await mem.set("user:email:a", b"1")
        await mem.set("user:email:b", b"2")
        assert await mem.list_keys(prefix="user:email:", limit=0) == []

    @pytest.mark.asyncio
    async def test_list_skips_expired(self, mem, ticker):
        await mem.set("a", b"1", ttl_seconds=10)
        await mem.set("b", b"2")
        ticker.t += 10
        assert [k.name for k in await mem.list_keys()] == ["b"]

    @pytest.mark.asyncio
    async def test_delete_bulk(self, mem):
        await mem.set("a", b"1")
        await mem.set("b", b"2")
        await mem.set("c", b"3")
        await mem.delete_bulk(["a", "c", "missing"])
        assert [k.name for k in await mem.list_keys()] == ["b"]
