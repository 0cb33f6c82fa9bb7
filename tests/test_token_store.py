"""
Tests for token stores.
"""

import json
from pathlib import Path

import pytest

from authttp import InMemoryTokenStore, JsonFileTokenStore
from authttp.token_store import AUTH_TOKEN_CACHE_KEY


async def test_in_memory_store() -> None:
    store = InMemoryTokenStore("a")
    assert await store.get_token() == "a"
    await store.set_token("b")
    assert await store.get_token() == "b"
    await store.clear_token()
    assert await store.get_token() is None


class TestJsonFileTokenStore:
    """Test suite for the file backed token store."""

    async def test_missing_file(self, tmp_path: Path) -> None:
        store = JsonFileTokenStore(tmp_path / "cache.json")
        assert await store.get_token() is None
        await store.clear_token()
        assert not (tmp_path / "cache.json").exists()

    async def test_round_trip_keeps_other_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "cache.json"
        path.parent.mkdir()
        path.write_text(json.dumps({"theme": "dark"}))
        store = JsonFileTokenStore(path)

        await store.set_token("secret")
        assert await JsonFileTokenStore(path).get_token() == "secret"
        assert json.loads(path.read_text()) == {
            "theme": "dark",
            AUTH_TOKEN_CACHE_KEY: "secret",
        }

        await store.clear_token()
        assert json.loads(path.read_text()) == {"theme": "dark"}

    async def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            await JsonFileTokenStore(path).get_token()
