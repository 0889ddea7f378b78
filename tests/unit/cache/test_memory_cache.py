"""
Unit tests for InMemoryCache.
"""

import pytest

from completion_core.cache.base import InMemoryCache
from completion_core.models.llm_models import Generation


@pytest.mark.asyncio
async def test_lookup_miss_returns_none():
    cache = InMemoryCache()
    assert await cache.lookup("prompt", "sig") is None


@pytest.mark.asyncio
async def test_update_then_lookup():
    cache = InMemoryCache()
    generations = [Generation(text="hello", finish_reason="stop")]

    await cache.update("prompt", "sig", generations)

    assert await cache.lookup("prompt", "sig") == generations
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_entries_are_scoped_by_signature():
    cache = InMemoryCache()
    await cache.update("prompt", "sig-a", [Generation(text="a")])

    assert await cache.lookup("prompt", "sig-b") is None


@pytest.mark.asyncio
async def test_update_overwrites():
    cache = InMemoryCache()
    await cache.update("prompt", "sig", [Generation(text="old")])
    await cache.update("prompt", "sig", [Generation(text="new")])

    result = await cache.lookup("prompt", "sig")

    assert [g.text for g in result] == ["new"]


@pytest.mark.asyncio
async def test_clear():
    cache = InMemoryCache()
    await cache.update("p1", "sig", [Generation(text="1")])
    await cache.update("p2", "sig", [Generation(text="2")])

    await cache.clear()

    assert len(cache) == 0
    assert await cache.lookup("p1", "sig") is None


@pytest.mark.asyncio
async def test_lookup_result_mutation_does_not_touch_entry():
    cache = InMemoryCache()
    await cache.update("prompt", "sig", [Generation(text="cached")])

    first = await cache.lookup("prompt", "sig")
    first.append(Generation(text="extra"))
    first[0].text = "changed"

    assert await cache.lookup("prompt", "sig") == [Generation(text="cached")]


@pytest.mark.asyncio
async def test_update_copies_input_list():
    cache = InMemoryCache()
    generations = [Generation(text="cached")]
    await cache.update("prompt", "sig", generations)

    generations.append(Generation(text="extra"))

    assert len(await cache.lookup("prompt", "sig")) == 1
