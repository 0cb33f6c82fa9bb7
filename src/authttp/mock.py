# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any, Protocol

from authttp.descriptor import HttpVerb
from authttp.errors import MockFixtureNotFound

logger = logging.getLogger(__name__)

_TOKEN_MARKS = re.compile(r"[{}:]")
_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")


def mock_slug(path: str) -> str:
    """``/api/plan/{id}/details`` -> ``api_plan_id_details``"""
    return _SEPARATORS.sub("_", _TOKEN_MARKS.sub("", path)).strip("_")


def mock_filenames(method: HttpVerb, path: str) -> list[str]:
    """Candidate fixture names for a mock request, most specific first"""
    slug = mock_slug(path)
    names = [f"_{method.value.lower()}_{slug}.json"]
    if method is HttpVerb.GET:
        names.append(f"_{slug}.json")
    return names


class MockLoader(Protocol):

    async def load(self, filename: str) -> Any:
        """Return the decoded fixture, or raise ``FileNotFoundError``"""
        ...


class JsonDirectoryMockLoader(MockLoader):

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    async def load(self, filename: str) -> Any:
        content = await asyncio.to_thread(
            (self.directory / filename).read_text, encoding="utf-8"
        )
        return json.loads(content)


async def load_mock_response(
    loader: MockLoader, method: HttpVerb, path: str
) -> Any:
    tried: list[str] = []
    for filename in mock_filenames(method, path):
        try:
            response = await loader.load(filename)
        except FileNotFoundError:
            tried.append(filename)
            continue
        logger.info("MOCK response for %s %s from %s", method.value, path, filename)
        return response

    raise MockFixtureNotFound(
        message="Mock fixture not found for %s %s (tried %s)"
        % (method.value, path, ", ".join(tried))
    )


__all__ = [
    "MockLoader",
    "JsonDirectoryMockLoader",
    "load_mock_response",
    "mock_filenames",
    "mock_slug",
]
