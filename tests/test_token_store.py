"""Geçici onay token deposu (bellek içi)."""
import asyncio
import time

from pushgate.services.token_store import MemoryTokenStore, new_approval_token, tokens_match


def test_put_get_delete():
    async def scenario():
        store = MemoryTokenStore(ttl_seconds=300)
        await store.put("a1", "tok")
        got = await store.get("a1")
        await store.delete("a1")
        await store.delete("a1")
        return got, await store.get("a1")

    assert asyncio.run(scenario()) == ("tok", None)


def test_expires_after_ttl():
    async def scenario():
        store = MemoryTokenStore(ttl_seconds=0.05)
        await store.put("a1", "tok")
        time.sleep(0.1)
        return await store.get("a1")

    assert asyncio.run(scenario()) is None


def test_tokens_match():
    token = new_approval_token()
    assert tokens_match(token, token)
    assert not tokens_match(token, token + "x")
    assert not tokens_match(None, token)
    assert not tokens_match(token, None)
