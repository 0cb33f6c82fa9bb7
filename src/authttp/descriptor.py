# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from authttp.errors import InvalidDescriptorError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

MOCK_MODIFIER = "mock"
SILENT_MODIFIER = "silent"


class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    READ = "READ"
    READ_BYTES = "READ_BYTES"
    UPLOAD = "UPLOAD"
    DOWNLOAD = "DOWNLOAD"

    @property
    def transport_method(self) -> str:
        """The HTTP method actually sent on the wire"""
        if self in (HttpVerb.READ, HttpVerb.READ_BYTES, HttpVerb.DOWNLOAD):
            return "GET"
        if self is HttpVerb.UPLOAD:
            return "POST"
        return self.value

    @property
    def sends_body(self) -> bool:
        return self in (HttpVerb.POST, HttpVerb.PUT, HttpVerb.PATCH, HttpVerb.DELETE)

    @property
    def expects_bytes(self) -> bool:
        return self in (HttpVerb.READ_BYTES, HttpVerb.DOWNLOAD)

    @classmethod
    def from_keyword(cls, keyword: str) -> Optional["HttpVerb"]:
        return VERB_KEYWORDS.get(keyword.lower())


VERB_KEYWORDS: dict[str, HttpVerb] = {
    "get": HttpVerb.GET,
    "post": HttpVerb.POST,
    "put": HttpVerb.PUT,
    "delete": HttpVerb.DELETE,
    "patch": HttpVerb.PATCH,
    "head": HttpVerb.HEAD,
    "read": HttpVerb.READ,
    "readbytes": HttpVerb.READ_BYTES,
    "read_bytes": HttpVerb.READ_BYTES,
    "up": HttpVerb.UPLOAD,
    "upload": HttpVerb.UPLOAD,
    "down": HttpVerb.DOWNLOAD,
    "download": HttpVerb.DOWNLOAD,
}


@dataclass(frozen=True)
class RequestDescriptor:
    method: HttpVerb
    path_template: str
    is_mock: bool = False
    is_silent: bool = False


def parse_descriptor(dsl: str, *, strict: bool = False) -> RequestDescriptor:
    """
    Parse a request descriptor such as ``"MOCK SILENT POST /api/plan/:id"``.

    The last token is the path (or full URL) and is kept verbatim. The tokens
    before it may hold one HTTP verb keyword plus the ``MOCK`` and ``SILENT``
    modifiers, in any order and casing. Without a recognised verb the method
    is GET, and unknown tokens are ignored unless ``strict`` is set.
    """
    normalized = _WHITESPACE.sub(" ", dsl).strip()
    if not normalized:
        raise InvalidDescriptorError("Request descriptor can not be empty")

    parts = normalized.split(" ")[::-1]
    path, modifiers = parts[0], parts[1:]

    method: Optional[HttpVerb] = None
    is_mock = False
    is_silent = False
    for token in modifiers:
        lowered = token.lower()
        if lowered == MOCK_MODIFIER:
            is_mock = True
            continue
        if lowered == SILENT_MODIFIER:
            is_silent = True
            continue
        verb = HttpVerb.from_keyword(lowered)
        if verb is not None and method is None:
            method = verb
            continue
        if strict:
            raise InvalidDescriptorError(
                "Unrecognized token %r in request descriptor %r" % (token, dsl)
            )
        logger.debug("Ignoring token %r in request descriptor %r", token, dsl)

    return RequestDescriptor(
        method=method or HttpVerb.GET,
        path_template=path,
        is_mock=is_mock,
        is_silent=is_silent,
    )


__all__ = [
    "HttpVerb",
    "VERB_KEYWORDS",
    "RequestDescriptor",
    "parse_descriptor",
]
