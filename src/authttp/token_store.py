# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

AUTH_TOKEN_CACHE_KEY = "-cached-authorization"


class TokenStore(Protocol):
    """Persistence for the bearer token attached to authenticated requests"""

    async def get_token(self) -> Optional[str]: ...

    async def set_token(self, token: str) -> None: ...

    async def clear_token(self) -> None: ...


class InMemoryTokenStore(TokenStore):

    def __init__(self, token: Optional[str] = None):
        self._token = token

    async def get_token(self) -> Optional[str]:
        return self._token

    async def set_token(self, token: str) -> None:
        self._token = token

    async def clear_token(self) -> None:
        self._token = None


class JsonFileTokenStore(TokenStore):
    """
    Keeps the token under ``key`` in a small JSON key-value file, so that it
    survives process restarts. Other keys in the file are preserved.
    """

    def __init__(self, path: str | Path, key: str = AUTH_TOKEN_CACHE_KEY):
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        content = self.path.read_text(encoding="utf-8")
        if not content.strip():
            return {}
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("Token store file %s is not a JSON object" % self.path)
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    async def get_token(self) -> Optional[str]:
        data = await asyncio.to_thread(self._read)
        return data.get(self.key)

    async def set_token(self, token: str) -> None:
        def update() -> None:
            data = self._read()
            data[self.key] = token
            self._write(data)

        await asyncio.to_thread(update)
        logger.debug("Stored auth token in %s", self.path)

    async def clear_token(self) -> None:
        def remove() -> None:
            data = self._read()
            if data.pop(self.key, None) is not None:
                self._write(data)

        await asyncio.to_thread(remove)


__all__ = [
    "AUTH_TOKEN_CACHE_KEY",
    "TokenStore",
    "InMemoryTokenStore",
    "JsonFileTokenStore",
]
